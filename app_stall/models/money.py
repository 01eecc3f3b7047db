# ==============================================================================
# DINERO - Aritmética de punto fijo para montos
# ==============================================================================
# Todos los montos del sistema (precios, descuentos, impuestos, totales, vuelto)
# se manejan como Decimal. Nunca float: sumas y restas repetidas con float
# acumulan error y el cuadre de caja deja de coincidir.
#
# El redondeo para mostrar (0 o 2 decimales) es SOLO cosmético y vive en
# format_money(). Los totales guardados no se redondean.
# ==============================================================================

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

ZERO = Decimal('0')
HUNDRED = Decimal('100')
CENTS = Decimal('0.01')

CURRENCY_SYMBOL = '₹'


class InvalidMoneyError(ValueError):
    """Se lanza cuando un valor no puede interpretarse como monto."""
    pass


def to_money(value: Any, allow_negative: bool = False) -> Decimal:
    """
    Convierte un valor de entrada (str, int, float, Decimal) a Decimal.

    Los float se convierten vía str() para no arrastrar la representación
    binaria (0.1 -> Decimal('0.1'), no Decimal('0.1000000000000000055...')).

    Args:
        value: Valor a convertir
        allow_negative: Si False, los negativos se rechazan

    Returns:
        Monto como Decimal

    Raises:
        InvalidMoneyError: Si el valor es vacío, no numérico, NaN/inf o negativo
    """
    if isinstance(value, bool) or value is None:
        raise InvalidMoneyError(f'Monto inválido: {value!r}')
    if isinstance(value, Decimal):
        amount = value
    else:
        text = str(value).strip()
        if not text:
            raise InvalidMoneyError('Monto vacío')
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise InvalidMoneyError(f'Monto inválido: {value!r}')
    if not amount.is_finite():
        raise InvalidMoneyError(f'Monto inválido: {value!r}')
    if amount < ZERO and not allow_negative:
        raise InvalidMoneyError(f'El monto no puede ser negativo: {value!r}')
    return amount


def money_or_none(value: Any) -> Any:
    """Como to_money() pero deja pasar None (campos opcionales)."""
    if value is None or value == '':
        return None
    return to_money(value)


def sum_money(values: Iterable[Decimal]) -> Decimal:
    """Suma exacta de montos (sum() con start Decimal)."""
    return sum(values, ZERO)


def money_str(amount: Decimal) -> str:
    """Serializa un monto para JSON sin perder precisión."""
    return str(amount)


def format_money(amount: Any, places: int = 2, symbol: str = CURRENCY_SYMBOL) -> str:
    """
    Formatea un monto para mostrar. No usar el resultado para cálculos.

    Args:
        amount: Monto (Decimal o convertible)
        places: 0 o 2 decimales
        symbol: Símbolo de moneda

    Returns:
        Texto como '₹178.50'
    """
    value = to_money(amount, allow_negative=True)
    quantum = Decimal(1) if places == 0 else CENTS
    rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)
    return f'{symbol}{rounded}'
