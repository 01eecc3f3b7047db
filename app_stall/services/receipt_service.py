# ==============================================================================
# BOLETAS EN TEXTO PLANO
# ==============================================================================
# Genera el contenido de las copias impresas de una venta:
#   - KOT (copia de cocina): token grande, cantidades e instrucciones
#   - Boleta cliente: líneas, subtotal/descuento/impuesto/total, pago
#   - Duplicado: reimpresión desde el historial
#
# Ancho fijo de 42 columnas (papel térmico de 80mm). Los montos se
# formatean con format_money() solo al imprimir.
# ==============================================================================

from typing import List

from app_stall.models.entities import BillSettings, PaymentMethod, SaleRecord
from app_stall.models.money import ZERO, format_money

WIDTH = 42
DIVIDER = '-' * WIDTH

COPY_KITCHEN = 'kitchen'
COPY_CUSTOMER = 'customer'
COPY_DUPLICATE = 'duplicate'
COPY_TYPES = (COPY_KITCHEN, COPY_CUSTOMER, COPY_DUPLICATE)


def _center(text: str) -> str:
    return text.center(WIDTH).rstrip()


def _row(left: str, right: str) -> str:
    space = max(1, WIDTH - len(left) - len(right))
    return f"{left}{' ' * space}{right}"


def _local_time(record: SaleRecord) -> str:
    committed = record.committed_at
    if not committed:
        return record.timestamp
    return committed.astimezone().strftime('%Y-%m-%d %H:%M')


def _token_block(record: SaleRecord) -> List[str]:
    return [
        '=' * WIDTH,
        _center('TOKEN NUMBER'),
        _center(f"#{record.token_number}"),
        '=' * WIDTH,
    ]


def _customer_lines(record: SaleRecord) -> List[str]:
    lines = []
    for item in record.items:
        lines.append(_row(f"{item.quantity}x {item.name}", format_money(item.line_total)))
        if item.instructions:
            lines.append(f"   Note: {item.instructions}")
    return lines


def render_kitchen(record: SaleRecord, settings: BillSettings) -> str:
    """Copia de cocina (KOT): sin precios, instrucciones resaltadas."""
    out = [
        _center('KITCHEN KOT'),
        _center(settings.stall_name.upper()),
        *_token_block(record),
        _center(_local_time(record)),
        DIVIDER,
    ]
    for item in record.items:
        out.append(f"{item.quantity} x {item.name}")
        if item.instructions:
            out.append(f"  >>> {item.instructions.upper()}")
    out += [DIVIDER, _center('*** KITCHEN COPY ***')]
    return '\n'.join(out) + '\n'


def render_customer(record: SaleRecord, settings: BillSettings) -> str:
    """Boleta del cliente con el desglose completo."""
    out = [
        _center(settings.stall_name.upper()),
        _center('CUSTOMER RECEIPT'),
        *_token_block(record),
        _center(_local_time(record)),
        DIVIDER,
        *_customer_lines(record),
        DIVIDER,
        _row('Subtotal:', format_money(record.subtotal)),
    ]
    if record.discount_amount > ZERO:
        out.append(_row('Discount:', '-' + format_money(record.discount_amount)))
    if record.tax_amount > ZERO:
        out.append(_row(f"Tax ({record.tax_rate.normalize():f}%):", format_money(record.tax_amount)))
    out += [
        _row('GRAND TOTAL:', format_money(record.total)),
        DIVIDER,
        _row('PAYMENT:', record.payment_method.value),
    ]
    if record.payment_method == PaymentMethod.CASH:
        out.append(_row('Received:', format_money(record.cash_received)))
        out.append(_row('Change:', format_money(record.cash_change)))
    out += [DIVIDER, _center(settings.footer_message)]
    return '\n'.join(out) + '\n'


def render_duplicate(record: SaleRecord, settings: BillSettings) -> str:
    """Reimpresión desde el historial."""
    out = [
        _center(settings.stall_name.upper()),
        _center('DUPLICATE RECEIPT'),
        *_token_block(record),
        _center(f"Order #{record.id}"),
        _center(f"Staff: {record.settled_by}"),
        _center(_local_time(record)),
    ]
    if record.is_voided:
        out.append(_center('*** VOIDED ***'))
    out += [
        DIVIDER,
        *_customer_lines(record),
        DIVIDER,
        _row('TOTAL PAID:', format_money(record.total)),
        _row('Payment Mode:', record.payment_method.value),
        DIVIDER,
        _center(settings.footer_message),
    ]
    return '\n'.join(out) + '\n'


RENDERERS = {
    COPY_KITCHEN: render_kitchen,
    COPY_CUSTOMER: render_customer,
    COPY_DUPLICATE: render_duplicate,
}


def render(record: SaleRecord, settings: BillSettings, copy: str) -> str:
    if copy not in RENDERERS:
        raise ValueError(f"Tipo de copia inválido: {copy!r}")
    return RENDERERS[copy](record, settings)
