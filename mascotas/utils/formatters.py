"""
Utilidades de formateo para mensajes y tickets.
Números, montos y fechas en estilo argentino.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import date, datetime
from typing import Union, Optional

Numeric = Union[int, float, Decimal, str, None]


def _to_decimal(value: Numeric) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        if isinstance(value, str):
            value = value.replace(",", ".")
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None


def _group_thousands(integer_part: str) -> str:
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    return '.'.join(groups)[::-1]


def num_ar(value: Numeric, decimals: Optional[int] = None) -> str:
    """
    Formatea un número en estilo argentino:
    - Separador de miles: punto (.)
    - Separador decimal: coma (,)
    - Si no tiene decimales significativos, no los muestra

    Examples:
        num_ar(1500) -> "1.500"
        num_ar(1500.5) -> "1.500,5"
        num_ar(Decimal('1E+2')) -> "100"
        num_ar(None) -> "-"
    """
    num = _to_decimal(value)
    if num is None:
        return "-"
    if num == 0:
        return "0"

    if decimals is not None:
        num = num.quantize(Decimal(10) ** -decimals, rounding=ROUND_HALF_UP)

    # 'f' avoids scientific notation for results such as Decimal('1E+2')
    num_str = f"{num:f}"
    sign = ''
    if num_str.startswith('-'):
        sign, num_str = '-', num_str[1:]

    if '.' in num_str:
        integer_part, decimal_part = num_str.split('.')
        decimal_part = decimal_part.rstrip('0')
    else:
        integer_part, decimal_part = num_str, ""

    formatted = _group_thousands(integer_part)
    if decimal_part:
        return f"{sign}{formatted},{decimal_part}"
    return f"{sign}{formatted}"


def money_ar_2(value: Numeric) -> str:
    """Monto con exactamente 2 decimales (ej: 1.500,00). "-" si es inválido."""
    num = _to_decimal(value)
    if num is None:
        return "-"
    num = num.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    sign = "-" if num < 0 else ""
    integer_part, decimal_part = f"{abs(num):.2f}".split(".")
    return f"{sign}{_group_thousands(integer_part)},{decimal_part}"


def currency_ar(value: Numeric) -> str:
    """
    Monto en pesos para mostrar al cliente.

    Examples:
        currency_ar(1500) -> "$ 1.500"
        currency_ar(1500.5) -> "$ 1.500,50"
    """
    num = _to_decimal(value)
    if num is None:
        return "-"
    num = num.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    if num == num.to_integral_value():
        return f"$ {num_ar(num)}"
    return f"$ {money_ar_2(num)}"


def date_ar(value: Union[date, datetime, None]) -> str:
    """Fecha en formato DD/MM/YYYY ("-" si es None)."""
    if value is None:
        return "-"
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        return "-"
    return value.strftime("%d/%m/%Y")


def time_ar(value: Optional[datetime]) -> str:
    """Hora en formato HH:MM."""
    if not isinstance(value, datetime):
        return "-"
    return value.strftime("%H:%M")
