# ==============================================================================
# SERVICIO DE CATÁLOGO (MENÚ)
# ==============================================================================
# Alta, edición, baja y disponibilidad de ítems del menú.
# Cada cambio local se replica como INVENTORY_UPDATE (reemplazo completo).
# Borrar un ítem NO afecta ventas históricas: guardan su propia copia.
# ==============================================================================

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from app_stall.constants import PREDEFINED_CATEGORIES
from app_stall.models.entities import MenuItem
from app_stall.models.money import InvalidMoneyError, to_money
from app_stall.repositories.menu_repository import MenuRepository
from app_stall.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Servicio del catálogo del puesto.

    Responsabilidades:
    - CRUD de ítems del menú
    - Interruptor manual de disponibilidad (no hay conteo de stock)
    - Reemplazo completo desde la réplica
    """

    def __init__(self, menu_repo: MenuRepository, audit_service: AuditService = None):
        self.menu_repo = menu_repo
        self.audit_service = audit_service
        self.publisher = None

    def set_publisher(self, publisher) -> None:
        """Configura quién replica los cambios (ReplicationService)."""
        self.publisher = publisher

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_items(
        self,
        category: str = None,
        available_only: bool = False,
        query: str = ''
    ) -> List[MenuItem]:
        items = [MenuItem.from_dict(d) for d in self.menu_repo.load()]
        if category:
            items = [i for i in items if i.category == category]
        if available_only:
            items = [i for i in items if i.is_available]
        if query:
            q = query.strip().lower()
            items = [i for i in items if q in i.name.lower()]
        return items

    def get_item(self, item_id: str) -> Optional[MenuItem]:
        data = self.menu_repo.get_item(str(item_id))
        return MenuItem.from_dict(data) if data else None

    def categories(self) -> List[str]:
        """Categorías predefinidas + las que ya usan los ítems (sin repetir)."""
        seen = list(PREDEFINED_CATEGORIES)
        for item in self.list_items():
            if item.category and item.category not in seen:
                seen.append(item.category)
        return seen

    # =========================================================================
    # VALIDACIÓN
    # =========================================================================

    def _validate_fields(
        self,
        data: Dict[str, Any],
        partial: bool = False
    ) -> Tuple[Dict[str, Any], Optional[str]]:
        """
        Valida y normaliza los campos de un ítem.

        Returns:
            (campos normalizados, mensaje de error o None)
        """
        fields = {}

        if 'name' in data or not partial:
            name = (data.get('name') or '').strip()
            if not name:
                return {}, 'El nombre es obligatorio'
            fields['name'] = name

        if 'price' in data or not partial:
            try:
                fields['price'] = str(to_money(data.get('price')))
            except InvalidMoneyError:
                return {}, 'Precio inválido'

        if 'category' in data or not partial:
            category = (data.get('category') or '').strip()
            if not category:
                return {}, 'La categoría es obligatoria'
            fields['category'] = category

        if 'description' in data:
            fields['description'] = data.get('description') or ''

        if 'is_available' in data:
            fields['is_available'] = bool(data.get('is_available'))

        return fields, None

    # =========================================================================
    # MUTACIONES
    # =========================================================================

    def create_item(self, data: Dict[str, Any], user: str = '') -> Dict[str, Any]:
        """
        Crea un ítem nuevo (disponible por defecto).

        Returns:
            Dict con ok/error e item
        """
        fields, error = self._validate_fields(data)
        if error:
            return {'ok': False, 'error': error}

        item_id = str(data.get('id') or uuid.uuid4().hex[:8])
        if self.menu_repo.get_item(item_id):
            return {'ok': False, 'error': f'Ya existe un ítem con id {item_id}'}

        fields.setdefault('is_available', True)
        item = MenuItem.from_dict(dict(fields, id=item_id))
        self.menu_repo.create_item(item.to_dict())

        if self.audit_service:
            self.audit_service.log_menu_change(user, 'alta', item.id, item.name)
        self._publish()
        return {'ok': True, 'item': item}

    def update_item(self, item_id: str, data: Dict[str, Any], user: str = '') -> Dict[str, Any]:
        """Edición parcial de un ítem existente."""
        if not self.menu_repo.get_item(str(item_id)):
            return {'ok': False, 'error': 'Ítem no encontrado', 'not_found': True}

        fields, error = self._validate_fields(data, partial=True)
        if error:
            return {'ok': False, 'error': error}

        updated = self.menu_repo.update_item(str(item_id), fields)
        item = MenuItem.from_dict(updated)

        if self.audit_service:
            self.audit_service.log_menu_change(user, 'edición', item.id, item.name)
        self._publish()
        return {'ok': True, 'item': item}

    def delete_item(self, item_id: str, user: str = '') -> Dict[str, Any]:
        removed = self.menu_repo.delete_item(str(item_id))
        if not removed:
            return {'ok': False, 'error': 'Ítem no encontrado', 'not_found': True}

        if self.audit_service:
            self.audit_service.log_menu_change(user, 'baja', removed['id'], removed.get('name', ''))
        self._publish()
        return {'ok': True, 'item': MenuItem.from_dict(removed)}

    def toggle_availability(self, item_id: str, user: str = '') -> Dict[str, Any]:
        item = self.get_item(item_id)
        if not item:
            return {'ok': False, 'error': 'Ítem no encontrado', 'not_found': True}
        return self.update_item(item_id, {'is_available': not item.is_available}, user)

    # =========================================================================
    # RÉPLICA
    # =========================================================================

    def replace_all(self, items: List[Dict[str, Any]]) -> bool:
        """
        Reemplazo completo del catálogo con el recibido de otro terminal.
        Si algún ítem es inválido se descarta el mensaje completo.

        Returns:
            True si se aplicó
        """
        try:
            parsed = [MenuItem.from_dict(d) for d in items]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("INVENTORY_UPDATE inválido descartado: %s", e)
            return False
        self.menu_repo.save([item.to_dict() for item in parsed])
        return True

    def export_items(self) -> List[Dict[str, Any]]:
        return [item.to_dict() for item in self.list_items()]

    def _publish(self) -> None:
        if self.publisher:
            self.publisher.publish_inventory(self.export_items())
