"""Number parsing utilities for decimal-safe API payloads."""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

BR_NUMBER_PATTERN = re.compile(r"^(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$")
PLAIN_NUMBER_PATTERN = re.compile(r"^\d+(?:\.\d+)?$")
QUANTITY_PATTERN = re.compile(r"^(?:\d{1,3}(?:\.\d{3})+|\d+)$")


def parse_decimal(value: Union[str, int, float, Decimal, None], field: str = 'valor') -> Decimal:
    """
    Parse a non-negative number coming from an API payload to Decimal.

    Accepted forms:
    - Decimal / int / float (floats go through str())
    - Plain strings: "1234.56", "15"
    - Brazilian strings: "1.234,56", "1234,5"

    A lone dot is read as the decimal separator ("1.234" is 1.234).

    Raises:
        ValueError: if the value is empty, malformed or negative.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f'{field}: formato inválido. Use 1234.56 ou 1.234,56')

    if isinstance(value, Decimal):
        decimal_value = value
    elif isinstance(value, (int, float)):
        decimal_value = Decimal(str(value))
    else:
        cleaned = str(value).strip()
        if not cleaned:
            raise ValueError(f'{field}: formato inválido. Use 1234.56 ou 1.234,56')

        if cleaned.startswith('-'):
            raise ValueError(f'{field}: o valor não pode ser negativo')

        if PLAIN_NUMBER_PATTERN.match(cleaned):
            normalized = cleaned
        elif BR_NUMBER_PATTERN.match(cleaned):
            normalized = cleaned.replace('.', '').replace(',', '.')
        else:
            raise ValueError(f'{field}: formato inválido. Use 1234.56 ou 1.234,56')

        try:
            decimal_value = Decimal(normalized)
        except (InvalidOperation, ValueError):
            raise ValueError(f'{field}: formato inválido. Use 1234.56 ou 1.234,56')

    if not decimal_value.is_finite():
        raise ValueError(f'{field}: formato inválido. Use 1234.56 ou 1.234,56')

    if decimal_value < 0:
        raise ValueError(f'{field}: o valor não pode ser negativo')

    return decimal_value


def parse_quantity(value: Union[str, int, None]) -> int:
    """
    Parse a strictly positive integer quantity.

    Strings are whole numbers, optionally grouped by thousands in Brazilian
    style: "1.000" is one thousand. Decimal separators are rejected, so
    "2.0" and "1,5" are errors.
    """
    if isinstance(value, str):
        cleaned = value.strip()
        if not QUANTITY_PATTERN.match(cleaned):
            raise ValueError('A quantidade deve ser um número inteiro maior que 0.')
        qty = Decimal(cleaned.replace('.', ''))
    else:
        try:
            qty = parse_decimal(value, 'quantidade')
        except ValueError:
            raise ValueError('A quantidade deve ser um número inteiro maior que 0.')

    if qty <= 0 or qty != qty.to_integral_value():
        raise ValueError('A quantidade deve ser um número inteiro maior que 0.')
    return int(qty)


def parse_optional_id(value) -> Optional[int]:
    """Parse an optional foreign-key id (None, "" and 0 mean no reference)."""
    if value in (None, '', 0, '0'):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f'Identificador inválido: {value!r}')


def decimal_str(value: Optional[Decimal], places: int = 2) -> str:
    """Serialize a Decimal as a fixed-point string ("800.00")."""
    if value is None:
        value = Decimal('0')
    return f"{Decimal(value):.{places}f}"
