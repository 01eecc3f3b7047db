# ==============================================================================
# CUADRE DE CAJA
# ==============================================================================
# Efectivo esperado en el cajón:
#
#   fondo inicial + Σ recibido (o total si falta) − Σ vuelto (o 0)
#
# sobre las ventas CASH no anuladas. El resultado no depende del orden de
# las ventas (suma conmutativa sobre Decimal).
# ==============================================================================

from decimal import Decimal
from typing import Any, Dict, Iterable

from app_stall.models.entities import PaymentMethod, SaleRecord
from app_stall.models.money import ZERO, money_str, to_money


def _cash_records(records: Iterable[SaleRecord]):
    return [
        r for r in records
        if r.payment_method == PaymentMethod.CASH and not r.is_voided
    ]


def expected_drawer_cash(records: Iterable[SaleRecord], opening_cash: Decimal) -> Decimal:
    summary = drawer_summary(records, opening_cash)
    return summary['expected']


def drawer_summary(records: Iterable[SaleRecord], opening_cash: Any) -> Dict[str, Any]:
    """
    Desglose del cuadre de caja.

    Returns:
        Dict con opening_cash, cash_in, change_out, cash_sales, cash_orders
        y expected (todos Decimal salvo cash_orders)
    """
    opening = to_money(opening_cash)
    cash = _cash_records(records)

    cash_in = ZERO
    change_out = ZERO
    cash_sales = ZERO
    for record in cash:
        received = record.cash_received
        change = record.cash_change
        cash_in += received if received is not None else record.total
        change_out += change if change is not None else ZERO
        cash_sales += record.total

    return {
        'opening_cash': opening,
        'cash_in': cash_in,
        'change_out': change_out,
        'cash_sales': cash_sales,
        'cash_orders': len(cash),
        'expected': opening + cash_in - change_out,
    }


class DrawerService:
    """Cuadre de caja sobre el ledger local y el fondo inicial configurado."""

    def __init__(self, ledger_service, settings_service):
        self.ledger_service = ledger_service
        self.settings_service = settings_service

    def summary(self) -> Dict[str, Any]:
        return drawer_summary(
            self.ledger_service.list_records(),
            self.settings_service.get_opening_cash()
        )

    def summary_json(self) -> Dict[str, Any]:
        data = self.summary()
        return {
            key: (money_str(value) if isinstance(value, Decimal) else value)
            for key, value in data.items()
        }
