# ==============================================================================
# CONTRATO DE REPLICACIÓN - Mensajes y reglas de merge
# ==============================================================================
# Independiente del transporte (broadcast local, polling REST, ...).
# Cada mensaje es un "put" idempotente: aplicar el mismo mensaje dos veces
# deja el estado igual que aplicarlo una vez.
#
#   SALES_UPDATE         -> upsert por id (uno o varios registros)
#   INVENTORY_UPDATE     -> reemplazo completo del catálogo
#   SETTINGS_UPDATE      -> reemplazo completo de BillSettings
#   OPENING_CASH_UPDATE  -> reemplazo del fondo de caja inicial
#   REMOTE_PRINT_REQUEST -> canal lateral para el Print Hub (no es estado)
# ==============================================================================

import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from app_stall.models.entities import SaleRecord


class MessageType(str, Enum):
    SALES_UPDATE = "SALES_UPDATE"
    INVENTORY_UPDATE = "INVENTORY_UPDATE"
    SETTINGS_UPDATE = "SETTINGS_UPDATE"
    OPENING_CASH_UPDATE = "OPENING_CASH_UPDATE"
    REMOTE_PRINT_REQUEST = "REMOTE_PRINT_REQUEST"


@dataclass
class ReplicationMessage:
    """Sobre de un mensaje de réplica."""
    type: MessageType
    payload: Any
    origin: str = ''
    namespace: str = ''
    message_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'payload': self.payload,
            'origin': self.origin,
            'namespace': self.namespace,
            'message_id': self.message_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReplicationMessage':
        return cls(
            type=MessageType(data['type']),
            payload=data.get('payload'),
            origin=data.get('origin', ''),
            namespace=data.get('namespace', ''),
            message_id=data.get('message_id') or uuid.uuid4().hex,
        )


def namespace_for(stall_name: str) -> str:
    """
    Namespace de réplica derivado del nombre del puesto.
    'KC HIGH' -> 'kc-high'
    """
    slug = re.sub(r'[^a-z0-9]+', '-', (stall_name or '').strip().lower()).strip('-')
    return slug or 'default'


def sales_payload_records(payload: Any) -> List[Dict[str, Any]]:
    """Normaliza el payload de SALES_UPDATE: acepta un registro o una lista."""
    if payload is None:
        return []
    if isinstance(payload, dict):
        return [payload]
    return [record for record in payload if isinstance(record, dict)]


def remote_wins(local: Optional[Dict[str, Any]], remote: Dict[str, Any]) -> bool:
    """
    Decide si el registro remoto reemplaza al local (mismo id).

    Gana la mayor version_key(): (estado final, revision, updated_at, terminal).
    Es un máximo sobre un orden total, así que el resultado no depende del
    orden de llegada ni de duplicados.
    """
    if local is None:
        return True
    return SaleRecord.from_dict(remote).version_key() > SaleRecord.from_dict(local).version_key()


def empty_snapshot() -> Dict[str, Any]:
    """Estado completo vacío de un namespace."""
    return {
        'sales': {},
        'inventory': None,
        'settings': None,
        'opening_cash': None,
    }


def apply_message_to_snapshot(snapshot: Dict[str, Any], message: ReplicationMessage) -> bool:
    """
    Pliega un mensaje dentro de un snapshot (dict) in-place.
    Usado por el hub local y por el relay REST para poder responder resync().

    Returns:
        True si el snapshot cambió
    """
    changed = False
    if message.type == MessageType.SALES_UPDATE:
        sales = snapshot.setdefault('sales', {})
        for record in sales_payload_records(message.payload):
            sale_id = str(record.get('id', ''))
            if not sale_id:
                continue
            if remote_wins(sales.get(sale_id), record):
                sales[sale_id] = record
                changed = True
    elif message.type == MessageType.INVENTORY_UPDATE:
        changed = snapshot.get('inventory') != message.payload
        snapshot['inventory'] = message.payload
    elif message.type == MessageType.SETTINGS_UPDATE:
        changed = snapshot.get('settings') != message.payload
        snapshot['settings'] = message.payload
    elif message.type == MessageType.OPENING_CASH_UPDATE:
        changed = snapshot.get('opening_cash') != message.payload
        snapshot['opening_cash'] = message.payload
    # REMOTE_PRINT_REQUEST no forma parte del estado
    return changed
