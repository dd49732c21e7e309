"""
Formatting utilities for human-facing text (logs, reports).
Brazilian style: R$ 1.234,56.
"""
from decimal import Decimal, InvalidOperation
from typing import Union


def _group_thousands(integer_part: str) -> str:
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    return '.'.join(groups)[::-1]


def num_br(value: Union[int, float, Decimal, str, None], decimals: int = 2) -> str:
    """
    Formata um número no estilo brasileiro com casas decimais fixas.

    Examples:
        num_br(1500) -> "1.500,00"
        num_br(1500.5, 1) -> "1.500,5"
        num_br(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value)).quantize(Decimal(10) ** -decimals)
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    num = abs(num)

    text = f"{num:.{decimals}f}"
    if decimals:
        integer_part, decimal_part = text.split(".")
        return f"{sign}{_group_thousands(integer_part)},{decimal_part}"
    return f"{sign}{_group_thousands(text)}"


def money_br(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Formata um valor monetário em reais.

    Examples:
        money_br(1234.5) -> "R$ 1.234,50"
        money_br(None) -> "-"
    """
    formatted = num_br(value)
    if formatted == "-":
        return formatted
    return f"R$ {formatted}"

