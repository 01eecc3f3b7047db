# ==============================================================================
# SERVICIO DE PEDIDOS (BACKEND REST)
# ==============================================================================
# Variante "nube": un backend mínimo de pedidos con tres operaciones.
#
#   GET  /api/orders  -> pedidos de las últimas 24h, más recientes primero
#   POST /api/orders  -> crea un pedido PENDING
#   PUT  /api/orders  -> actualización parcial (status y/o printed) por id
#
# Las validaciones devuelven {'ok': False, 'error', 'code'}; los errores de
# persistencia se propagan y la capa HTTP responde 500.
# ==============================================================================

from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP
from typing import Any, Dict, List

from app_stall.models.entities import OrderStatus, parse_ts, utc_now_iso
from app_stall.models.money import CENTS, InvalidMoneyError, money_str, to_money
from app_stall.repositories.orders_repository import OrdersRepository

RECENT_WINDOW = timedelta(hours=24)


class OrdersService:

    def __init__(self, orders_repo: OrdersRepository):
        self.orders_repo = orders_repo

    def recent_orders(self, now: datetime = None) -> List[Dict[str, Any]]:
        """Pedidos creados en las últimas 24 horas, más recientes primero."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - RECENT_WINDOW
        recent = []
        for row in self.orders_repo.list_rows():
            created = parse_ts(row.get('created_at'))
            if created and created > cutoff:
                recent.append((created, row))
        recent.sort(key=lambda pair: (pair[0], pair[1].get('id', 0)), reverse=True)
        return [row for _, row in recent]

    def create_order(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Args:
            data: {orderNumber, items, totalAmount}

        Returns:
            Dict con ok y order (fila creada) o error/code
        """
        data = data or {}
        order_number = data.get('orderNumber')
        items = data.get('items')
        if order_number in (None, '') or items is None:
            return {'ok': False, 'error': 'Missing order details', 'code': 400}

        try:
            total = to_money(data.get('totalAmount') or 0).quantize(CENTS, rounding=ROUND_HALF_UP)
        except InvalidMoneyError:
            return {'ok': False, 'error': 'Invalid totalAmount', 'code': 400}

        row = self.orders_repo.insert({
            'order_number': str(order_number),
            'items': items,
            'total_amount': money_str(total),
            'status': OrderStatus.PENDING.value,
            'printed': False,
            'created_at': utc_now_iso(),
        })
        return {'ok': True, 'order': row}

    def update_order(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualización parcial: solo se tocan los campos presentes.

        Args:
            data: {id, status?, printed?}
        """
        data = data or {}
        raw_id = data.get('id')
        if raw_id in (None, '', 0):
            return {'ok': False, 'error': 'Missing ID', 'code': 400}

        try:
            order_id = int(raw_id)
        except (TypeError, ValueError):
            return {'ok': False, 'error': 'Order not found', 'code': 404}

        updates = {}
        if 'status' in data and data['status'] is not None:
            try:
                updates['status'] = OrderStatus(str(data['status']).upper()).value
            except ValueError:
                return {'ok': False, 'error': f"Invalid status: {data['status']}", 'code': 400}
        if 'printed' in data and data['printed'] is not None:
            if not isinstance(data['printed'], bool):
                return {'ok': False, 'error': 'printed must be a boolean', 'code': 400}
            updates['printed'] = data['printed']

        # Sin campos que cambiar no hay UPDATE: se responde como fila inexistente
        if not updates:
            return {'ok': False, 'error': 'Order not found', 'code': 404}

        row = self.orders_repo.update_row(order_id, updates)
        if not row:
            return {'ok': False, 'error': 'Order not found', 'code': 404}
        return {'ok': True, 'order': row}
