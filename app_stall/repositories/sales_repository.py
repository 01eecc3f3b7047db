# ==============================================================================
# REPOSITORIO DE VENTAS (LEDGER LOCAL)
# ==============================================================================
# Encapsula el acceso a sales.json.
# Las ventas se guardan en orden de confirmación local: [{venta1}, {venta2}, ...]
# La clave es 'id' (el token_number NO es único).
# ==============================================================================

import copy
from typing import Any, Callable, Dict, List, Optional

from app_stall.repositories.base import ListRepository


class SalesRepository(ListRepository):
    """
    Formato de sales.json:
    [
        {
            "id": "BILL-3F9A0C21B7DE",
            "token_number": 8,
            "timestamp": "2026-10-19T10:00:00+00:00",
            "status": "PENDING",
            "items": [...],
            "total": "178.5",
            "payment_method": "CASH",
            "cash_received": "200",
            "cash_change": "21.5",
            ...
        }
    ]
    """

    FILENAME = 'sales.json'

    def load(self) -> List[Dict[str, Any]]:
        return self.get_all()

    def save(self, sales: List[Dict[str, Any]]) -> None:
        self.save_all(sales)

    def get_by_id(self, sale_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_key(sale_id)

    def get_by_token(self, token_number: int) -> List[Dict[str, Any]]:
        """Todas las ventas con ese token (puede haber varias)."""
        return self.find_all_by('token_number', token_number)

    def create_sale(self, sale_data: Dict[str, Any]) -> str:
        self.append(sale_data)
        return sale_data.get('id', '')

    def update_sale(
        self,
        sale_id: str,
        fn: Callable[[Optional[Dict[str, Any]]], Optional[Dict[str, Any]]]
    ) -> Optional[Dict[str, Any]]:
        """
        Read-modify-write de una venta dentro del lock de archivos.

        Args:
            sale_id: Id de la venta
            fn: Recibe una copia de la venta actual (o None si no existe) y
                retorna la venta a guardar, o None para dejarla igual.

        Returns:
            La venta guardada, o None si no hubo escritura
        """
        def _update(data):
            for i, existing in enumerate(data):
                if existing.get(self.KEY_FIELD) == sale_id:
                    updated = fn(copy.deepcopy(existing))
                    if updated is not None:
                        data[i] = updated
                    return updated
            fn(None)
            return None
        return self.mutate(_update)

    def merge_sale(
        self,
        sale_data: Dict[str, Any],
        wins: Callable[[Optional[Dict[str, Any]], Dict[str, Any]], bool]
    ) -> bool:
        """
        Upsert condicional: guarda sale_data solo si wins(local, sale_data).
        Comparación y escritura ocurren bajo el mismo lock.

        Returns:
            True si el ledger cambió
        """
        key = sale_data.get(self.KEY_FIELD)

        def _merge(data):
            for i, existing in enumerate(data):
                if existing.get(self.KEY_FIELD) == key:
                    if not wins(existing, sale_data):
                        return False
                    data[i] = sale_data
                    return True
            data.append(sale_data)
            return True
        return self.mutate(_merge)

    def search_sales(self, query: str = '') -> List[Dict[str, Any]]:
        """
        Búsqueda de texto por id de boleta, número de token o personal.
        """
        sales = self.load()
        if not query:
            return sales
        q = query.strip().lower()
        return [
            s for s in sales
            if q in str(s.get('id', '')).lower()
            or q in str(s.get('token_number', ''))
            or q in (s.get('settled_by') or '').lower()
        ]
