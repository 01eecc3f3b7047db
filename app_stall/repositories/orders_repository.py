# ==============================================================================
# REPOSITORIO DE PEDIDOS (BACKEND REST)
# ==============================================================================
# Tabla "orders" del backend en la nube, guardada en orders.json.
# Clave primaria numérica autoincremental ('id').
# ==============================================================================

from typing import Any, Dict, List, Optional

from app_stall.repositories.base import ListRepository


class OrdersRepository(ListRepository):
    """
    Formato de orders.json:
    [
        {
            "id": 1,
            "order_number": "8",
            "items": [...],
            "total_amount": "178.50",
            "status": "PENDING",
            "printed": false,
            "created_at": "2026-10-19T10:00:00+00:00"
        }
    ]
    """

    FILENAME = 'orders.json'

    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Inserta una fila asignando el siguiente id (SERIAL).

        Returns:
            Fila creada (con id)
        """
        def _insert(data):
            next_id = max((int(r.get('id', 0)) for r in data), default=0) + 1
            created = dict(row, id=next_id)
            data.append(created)
            return created
        return self.mutate(_insert)

    def update_row(self, order_id: int, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_where('id', order_id, updates)

    def list_rows(self) -> List[Dict[str, Any]]:
        return self.get_all()
