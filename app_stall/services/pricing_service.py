# ==============================================================================
# MOTOR DE PRECIOS
# ==============================================================================
# Subtotal, descuento, impuesto, total y vuelto a partir de las líneas del
# carrito. Funciones puras: sin efectos secundarios, todo en Decimal.
#
#   subtotal       = Σ(precio × cantidad)
#   descuento      = % del subtotal, o fijo; nunca mayor que el subtotal
#   base imponible = subtotal − descuento
#   impuesto       = base × tasa / 100
#   total          = base + impuesto
#   vuelto (CASH)  = max(0, recibido − total)
# ==============================================================================

from decimal import Decimal
from typing import Iterable, Optional

from app_stall.models.entities import (
    Cart,
    CartItem,
    Discount,
    DiscountType,
    PaymentMethod,
    Totals,
)
from app_stall.models.money import HUNDRED, ZERO, sum_money, to_money


def compute_subtotal(lines: Iterable[CartItem]) -> Decimal:
    return sum_money(line.line_total for line in lines)


def compute_discount(subtotal: Decimal, discount: Optional[Discount]) -> Decimal:
    """
    Monto de descuento acotado a [0, subtotal].
    """
    if discount is None or discount.value <= ZERO or subtotal <= ZERO:
        return ZERO
    if discount.type == DiscountType.PERCENT:
        amount = subtotal * (discount.value / HUNDRED)
    else:
        amount = discount.value
    return min(max(amount, ZERO), subtotal)


def compute_totals(
    lines: Iterable[CartItem],
    tax_rate: Decimal,
    discount: Discount = None,
    payment_method: PaymentMethod = None,
    cash_received: Optional[Decimal] = None
) -> Totals:
    """
    Calcula todos los montos de un pedido.

    Args:
        lines: Líneas del carrito
        tax_rate: Porcentaje de impuesto (>= 0)
        discount: Descuento a aplicar (opcional)
        payment_method: Si es CASH, se calcula vuelto y suficiencia
        cash_received: Efectivo entregado por el cliente

    Returns:
        Totals con cash_sufficient=False si el efectivo no alcanza
    """
    tax_rate = to_money(tax_rate)
    subtotal = compute_subtotal(lines)
    discount_amount = compute_discount(subtotal, discount)
    taxable_base = subtotal - discount_amount
    tax_amount = taxable_base * (tax_rate / HUNDRED)
    total = taxable_base + tax_amount

    totals = Totals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        taxable_base=taxable_base,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        total=total,
    )

    if payment_method == PaymentMethod.CASH:
        totals.cash_received = cash_received
        if cash_received is None:
            totals.cash_sufficient = False
            totals.cash_change = ZERO
        else:
            totals.cash_sufficient = cash_received >= total
            totals.cash_change = max(ZERO, cash_received - total)

    return totals


class PricingService:
    """
    Fachada del motor de precios que toma la tasa de impuesto de la
    configuración actual del puesto.
    """

    def __init__(self, settings_service):
        self.settings_service = settings_service

    def quote(
        self,
        cart: Cart,
        discount: Discount = None,
        payment_method: PaymentMethod = None,
        cash_received: Optional[Decimal] = None
    ) -> Totals:
        settings = self.settings_service.get_settings()
        return compute_totals(
            cart.items, settings.tax_rate, discount, payment_method, cash_received
        )
