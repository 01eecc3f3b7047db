# ==============================================================================
# SERVICIO DE REPORTES DE VENTAS
# ==============================================================================
# Vistas derivadas (solo lectura) sobre el ledger.
#
# REGLA PRINCIPAL: las ventas ANULADAS no suman ingresos.
# - PENDING / READY / SERVED ✅ cuentan
# - VOIDED ❌ solo aparece en el conteo de anuladas y en total_records
#
# Todas las agregaciones son por clave (método, personal, id+nombre de
# producto), nunca por posición: el resultado es el mismo sin importar el
# orden en que se recorra el ledger.
# ==============================================================================

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app_stall.models.entities import PaymentMethod, SaleRecord
from app_stall.models.money import CENTS, ZERO, money_str

PERIODS = ('all', 'today', 'week', 'month', 'custom')
RECENT_SERIES_SIZE = 10


def _get_date_range(
    period: str,
    custom_start: str = None,
    custom_end: str = None,
    now: datetime = None
) -> Optional[Tuple[datetime, datetime]]:
    """
    Calcula el rango de fechas según el período solicitado.

    Args:
        period: 'all', 'today', 'week', 'month', 'custom'
        custom_start: Fecha inicio para período custom (YYYY-MM-DD)
        custom_end: Fecha fin para período custom (YYYY-MM-DD)

    Returns:
        Tupla (inicio, fin) en hora local del terminal, o None para 'all'
    """
    if period == 'all':
        return None

    # Día calendario local: el mismo que usa el token diario
    now = (now or datetime.now()).astimezone()
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == 'week':
        return today_start - timedelta(days=now.weekday()), now

    if period == 'month':
        return today_start.replace(day=1), now

    if period == 'custom' and custom_start and custom_end:
        try:
            start = datetime.strptime(custom_start, '%Y-%m-%d').astimezone()
            end = datetime.strptime(custom_end, '%Y-%m-%d').replace(
                hour=23, minute=59, second=59
            ).astimezone()
            return start, end
        except ValueError:
            return today_start, now

    # Default: hoy
    return today_start, now


def filter_by_period(
    records: Iterable[SaleRecord],
    period: str = 'all',
    custom_start: str = None,
    custom_end: str = None,
    now: datetime = None
) -> List[SaleRecord]:
    """Ventas cuyo instante de confirmación cae dentro del período."""
    date_range = _get_date_range(period, custom_start, custom_end, now)
    if date_range is None:
        return list(records)

    start, end = date_range
    return [
        r for r in records
        if r.committed_at and start <= r.committed_at <= end
    ]


def _sort_key(record: SaleRecord):
    committed = record.committed_at or datetime.min.replace(tzinfo=timezone.utc)
    return committed, record.id


def summarize(records: Iterable[SaleRecord], recent_size: int = RECENT_SERIES_SIZE) -> Dict[str, Any]:
    """
    Calcula todas las métricas del reporte.

    Returns:
        {
            'gross_revenue': Decimal,       # Σ total sin anuladas
            'order_count': int,             # ventas válidas
            'average_ticket': Decimal,      # gross / order_count (2 decimales)
            'voided_count': int,
            'total_records': int,           # incluye anuladas (vista historial)
            'revenue_by_method': {CASH, CARD, UPI: Decimal},
            'revenue_by_staff': {nombre: Decimal},
            'item_ranking': [{id, name, quantity, revenue}],
            'recent_series': [{label, token_number, revenue, timestamp}],
        }
    """
    records = list(records)
    valid = [r for r in records if not r.is_voided]

    gross = ZERO
    by_method = {method.value: ZERO for method in PaymentMethod}
    by_staff = defaultdict(lambda: ZERO)
    items = defaultdict(lambda: {'quantity': 0, 'revenue': ZERO})

    for record in valid:
        gross += record.total
        by_method[record.payment_method.value] += record.total
        by_staff[record.settled_by or 'Sin nombre'] += record.total
        for line in record.items:
            entry = items[(line.id, line.name)]
            entry['quantity'] += line.quantity
            entry['revenue'] += line.line_total

    ranking = [
        {'id': item_id, 'name': name, 'quantity': data['quantity'], 'revenue': data['revenue']}
        for (item_id, name), data in items.items()
    ]
    # Más vendidos primero; empates por ingreso y luego por nombre/id
    ranking.sort(key=lambda x: (-x['quantity'], -x['revenue'], x['name'], x['id']))

    order_count = len(valid)
    average = (gross / order_count).quantize(CENTS, rounding=ROUND_HALF_UP) if order_count else ZERO

    recent = sorted(valid, key=_sort_key)[-recent_size:] if recent_size > 0 else []
    series = [
        {
            'label': f"#{r.id[-4:]}",
            'token_number': r.token_number,
            'revenue': r.total,
            'timestamp': r.timestamp,
        }
        for r in recent
    ]

    return {
        'gross_revenue': gross,
        'order_count': order_count,
        'average_ticket': average,
        'voided_count': len(records) - order_count,
        'total_records': len(records),
        'revenue_by_method': by_method,
        'revenue_by_staff': dict(sorted(by_staff.items())),
        'item_ranking': ranking,
        'recent_series': series,
    }


def summary_to_json(summary: Dict[str, Any]) -> Dict[str, Any]:
    """Convierte los Decimal del resumen a str para responder JSON."""
    def convert(value):
        if isinstance(value, dict):
            return {k: convert(v) for k, v in value.items()}
        if isinstance(value, list):
            return [convert(v) for v in value]
        if hasattr(value, 'quantize'):
            return money_str(value)
        return value
    return convert(summary)


class StatsService:
    """
    Servicio de reportes.

    Responsabilidades:
    - Filtrar el ledger por período (hoy / semana / mes / custom)
    - Calcular el resumen sobre la vista local del ledger
    """

    def __init__(self, ledger_service):
        self.ledger_service = ledger_service

    def summary(
        self,
        period: str = 'all',
        custom_start: str = None,
        custom_end: str = None,
        recent_size: int = RECENT_SERIES_SIZE
    ) -> Dict[str, Any]:
        if period not in PERIODS:
            period = 'all'
        records = filter_by_period(
            self.ledger_service.list_records(), period, custom_start, custom_end
        )
        result = summarize(records, recent_size)
        result['period'] = period
        date_range = _get_date_range(period, custom_start, custom_end)
        result['date_range'] = None if date_range is None else {
            'start': date_range[0].strftime('%Y-%m-%d'),
            'end': date_range[1].strftime('%Y-%m-%d'),
        }
        return result
