# ==============================================================================
# SECUENCIADOR DE TOKENS
# ==============================================================================
# Número visible para cocina/mostrador, en el rango [1, 999].
# NO es un identificador único: se repite al dar la vuelta, entre días y
# cuando dos terminales cobran a la vez antes de replicarse. Para buscar
# una venta usar SIEMPRE su id.
#
# Políticas (STALL_TOKEN_POLICY):
#   rolling -> (último token % 999) + 1, "último" por hora de confirmación
#   daily   -> (ventas de hoy % 999) + 1, reinicia cada día (hora local)
# ==============================================================================

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from app_stall.constants import MAX_TOKEN_NUMBER
from app_stall.models.entities import SaleRecord


def _commit_instant(record: SaleRecord) -> datetime:
    return record.committed_at or datetime.min.replace(tzinfo=timezone.utc)


def last_committed(records: Iterable[SaleRecord]) -> Optional[SaleRecord]:
    """
    Última venta por hora de confirmación. Empates: la que aparece después
    en el ledger local.
    """
    last = None
    last_key = None
    for position, record in enumerate(records):
        key = (_commit_instant(record), position)
        if last_key is None or key > last_key:
            last, last_key = record, key
    return last


def next_rolling_token(records: Iterable[SaleRecord]) -> int:
    last = last_committed(records)
    if last is None:
        return 1
    return (last.token_number % MAX_TOKEN_NUMBER) + 1


def next_daily_token(records: Iterable[SaleRecord], today=None) -> int:
    """
    Args:
        today: Fecha local de referencia (por defecto hoy)
    """
    today = today or datetime.now().date()
    count = sum(
        1 for r in records
        if r.committed_at and r.committed_at.astimezone().date() == today
    )
    return (count % MAX_TOKEN_NUMBER) + 1


class TokenService:
    """
    Asigna el siguiente token según la política configurada, sobre la vista
    local del ledger de ESTE terminal.
    """

    def __init__(self, policy: str = 'rolling', today_fn: Callable = None):
        if policy not in ('rolling', 'daily'):
            raise ValueError(f"Política de tokens inválida: {policy!r}")
        self.policy = policy
        self._today_fn = today_fn

    def next_token(self, records: Iterable[SaleRecord]) -> int:
        records = list(records)
        if self.policy == 'daily':
            today = self._today_fn() if self._today_fn else None
            return next_daily_token(records, today)
        return next_rolling_token(records)
