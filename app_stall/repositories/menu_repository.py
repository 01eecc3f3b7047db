# ==============================================================================
# REPOSITORIO DEL MENÚ
# ==============================================================================
# Encapsula el acceso a menu.json (lista ordenada de ítems del catálogo).
# En el primer arranque se siembra con INITIAL_MENU.
# ==============================================================================

import copy
from typing import Any, Dict, List, Optional

from app_stall.constants import INITIAL_MENU
from app_stall.repositories.base import ListRepository


class MenuRepository(ListRepository):
    """
    Formato de menu.json:
    [
        {"id": "1", "name": "Classic Burger", "price": "85",
         "category": "Food", "is_available": true},
        ...
    ]
    """

    FILENAME = 'menu.json'

    def _empty_data(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(INITIAL_MENU)

    def load(self) -> List[Dict[str, Any]]:
        return self.get_all()

    def save(self, items: List[Dict[str, Any]]) -> None:
        self.save_all(items)

    def get_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_key(item_id)

    def create_item(self, data: Dict[str, Any]) -> None:
        self.append(data)

    def update_item(self, item_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_where('id', item_id, data)

    def delete_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        return self.delete_where('id', item_id)
