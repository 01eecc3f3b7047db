# ==============================================================================
# SERVICIO DE RÉPLICA ENTRE TERMINALES
# ==============================================================================
# Une los servicios locales con un transporte:
#
#   salida:  ledger/catálogo/config/impresión -> publish_*() -> transporte
#   entrada: transporte -> handle() -> apply_remote / replace_* / print hub
#
# Los cambios se aplican primero en local; la réplica es posterior y nunca
# bloquea una venta. Un terminal que estuvo desconectado se pone al día
# con resync().
# ==============================================================================

import logging
from typing import Any, Dict, Optional

from app_stall.models.money import InvalidMoneyError
from app_stall.models.replication import (
    MessageType,
    ReplicationMessage,
    remote_wins,
    sales_payload_records,
)
from app_stall.performance_logger import profile_function
from app_stall.transports.base import ReplicationTransport

logger = logging.getLogger(__name__)


class ReplicationService:
    """
    Servicio de réplica.

    Responsabilidades:
    - Publicar los cambios locales (ventas, menú, configuración, caja)
    - Aplicar los mensajes recibidos de otros terminales
    - Resincronizar contra el snapshot compartido
    """

    def __init__(
        self,
        transport: ReplicationTransport,
        ledger_service,
        catalog_service,
        settings_service,
        print_service=None,
        audit_service=None
    ):
        self.transport = transport
        self.ledger_service = ledger_service
        self.catalog_service = catalog_service
        self.settings_service = settings_service
        self.print_service = print_service
        self.audit_service = audit_service
        self._started = False

    def start(self) -> None:
        """Registra el handler y conecta los servicios como publicadores."""
        if self._started:
            return
        self.transport.on_message(self.handle)
        for service in (self.ledger_service, self.catalog_service,
                        self.settings_service, self.print_service):
            if service is not None:
                service.set_publisher(self)
        self._started = True

    def close(self) -> None:
        self.transport.close()
        self._started = False

    # =========================================================================
    # SALIDA
    # =========================================================================

    def publish_sale(self, record: Dict[str, Any]) -> None:
        self.transport.publish(MessageType.SALES_UPDATE, record)

    def publish_inventory(self, items) -> None:
        self.transport.publish(MessageType.INVENTORY_UPDATE, items)

    def publish_settings(self, settings: Dict[str, Any]) -> None:
        self.transport.publish(MessageType.SETTINGS_UPDATE, settings)

    def publish_opening_cash(self, amount: str) -> None:
        self.transport.publish(MessageType.OPENING_CASH_UPDATE, amount)

    def publish_print_request(self, payload: Dict[str, Any]) -> None:
        self.transport.publish(MessageType.REMOTE_PRINT_REQUEST, payload)

    # =========================================================================
    # ENTRADA
    # =========================================================================

    def handle(self, message: ReplicationMessage) -> bool:
        """
        Aplica un mensaje recibido. Los mensajes inválidos se registran y se
        descartan sin afectar el estado local.

        Returns:
            True si el estado local cambió (o se imprimió, para el hub)
        """
        if message.origin == self.transport.terminal_id:
            return False

        try:
            if message.type == MessageType.SALES_UPDATE:
                changed = False
                for record in sales_payload_records(message.payload):
                    changed = self.ledger_service.apply_remote(record) or changed
                return changed

            if message.type == MessageType.INVENTORY_UPDATE:
                if not isinstance(message.payload, list):
                    logger.warning("INVENTORY_UPDATE sin lista de ítems descartado")
                    return False
                return self.catalog_service.replace_all(message.payload)

            if message.type == MessageType.SETTINGS_UPDATE:
                if not isinstance(message.payload, dict):
                    logger.warning("SETTINGS_UPDATE inválido descartado")
                    return False
                self.settings_service.replace_settings(message.payload)
                return True

            if message.type == MessageType.OPENING_CASH_UPDATE:
                self.settings_service.replace_opening_cash(message.payload)
                return True

            if message.type == MessageType.REMOTE_PRINT_REQUEST:
                if not self.print_service:
                    return False
                return self.print_service.handle_remote_print(message.payload) is not None
        except (KeyError, TypeError, ValueError, InvalidMoneyError) as e:
            logger.warning("Mensaje %s de %s descartado: %s",
                           message.type.value, message.origin, e)
        return False

    # =========================================================================
    # RESYNC
    # =========================================================================

    @profile_function(name="Resincronizar")
    def resync(self) -> Dict[str, Any]:
        """
        Se pone al día con el snapshot compartido y reenvía las ventas
        locales que el snapshot no tiene (o tiene en una versión anterior).

        Returns:
            Dict con ok, merged y republished
        """
        snapshot = self.transport.resync()
        if snapshot is None:
            return {'ok': False, 'error': 'No hay snapshot disponible para resincronizar'}

        remote_sales: Dict[str, Any] = snapshot.get('sales') or {}
        merged = 0
        for record in remote_sales.values():
            if self.ledger_service.apply_remote(record):
                merged += 1

        if snapshot.get('inventory') is not None:
            self.catalog_service.replace_all(snapshot['inventory'])
        if snapshot.get('settings') is not None:
            self.settings_service.replace_settings(snapshot['settings'])
        if snapshot.get('opening_cash') is not None:
            self.settings_service.replace_opening_cash(snapshot['opening_cash'])

        republished = 0
        for local in self.ledger_service.export_records():
            remote = remote_sales.get(local['id'])
            if remote is None or remote_wins(remote, local):
                self.publish_sale(local)
                republished += 1

        if self.audit_service:
            self.audit_service.log_resync(merged, republished)
        return {'ok': True, 'merged': merged, 'republished': republished}

    def pending_outbox(self) -> Optional[int]:
        """Mensajes sin enviar (solo transportes con bandeja de salida)."""
        return getattr(self.transport, 'outbox_size', None)
