# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Pedido en construcción del terminal. Vive solo en memoria: no se persiste
# ni se replica. Se vacía al confirmar la venta.
#
# Invariante: toda línea tiene cantidad >= 1. Bajar de 1 se queda en 1;
# la única forma de quitar un ítem es remove_item().
# ==============================================================================

from typing import Any, Dict, Optional

from app_stall.models.entities import Cart, CartItem
from app_stall.services.catalog_service import CatalogService


class CartService:
    """
    Servicio para gestión del carrito del terminal.

    Responsabilidades:
    - Agregar/quitar ítems del carrito
    - Ajustar cantidades e instrucciones por línea
    - Vaciar el carrito
    """

    def __init__(self, catalog_service: CatalogService, cart: Cart = None):
        """
        Args:
            catalog_service: Servicio de catálogo (para buscar ítems)
            cart: Carrito a usar (por defecto uno nuevo vacío)
        """
        self.catalog_service = catalog_service
        self.cart = cart if cart is not None else Cart()

    def get_cart(self) -> Dict[str, Any]:
        """
        Returns:
            Dict con items, total_items e items_count
        """
        return {
            'items': [line.to_dict() for line in self.cart.items],
            'total_items': self.cart.item_count,
            'items_count': len(self.cart.items),
        }

    def add_item(self, item_id: str) -> Dict[str, Any]:
        """
        Agrega una unidad del ítem. Si ya está en el carrito suma 1.
        Los ítems no disponibles se rechazan.
        """
        item = self.catalog_service.get_item(item_id)
        if not item:
            return {'ok': False, 'error': 'Ítem no encontrado'}
        if not item.is_available:
            return {'ok': False, 'error': f"'{item.name}' no está disponible"}

        existing = self.cart.find(item.id)
        if existing:
            existing.quantity += 1
        else:
            self.cart.items.append(CartItem.from_menu_item(item))

        return {'ok': True, 'cart': self.get_cart()}

    def update_quantity(
        self,
        item_id: str,
        delta: int = 0,
        instructions: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Ajusta la cantidad de una línea (mínimo 1).

        Args:
            item_id: Ítem de la línea
            delta: Cambio de cantidad (+1, -1, ...)
            instructions: Nota para cocina. None = no tocar; '' = borrar nota
        """
        line = self.cart.find(str(item_id))
        if not line:
            return {'ok': False, 'error': 'El ítem no está en el carrito'}
        try:
            delta = int(delta or 0)
        except (TypeError, ValueError):
            return {'ok': False, 'error': 'Cantidad inválida'}

        line.quantity = max(1, line.quantity + delta)
        if instructions is not None:
            line.instructions = instructions

        return {'ok': True, 'cart': self.get_cart()}

    def remove_item(self, item_id: str) -> Dict[str, Any]:
        """Quita la línea completa."""
        line = self.cart.find(str(item_id))
        if not line:
            return {'ok': False, 'error': 'El ítem no está en el carrito'}
        self.cart.items.remove(line)
        return {'ok': True, 'cart': self.get_cart()}

    def clear(self) -> None:
        self.cart.clear()
