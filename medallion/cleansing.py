"""
=================================================
Field-level cleansing rules for the Silver layer
=================================================

Scalar functions applied column by column by ``medallion.transforms``.
Each rule takes one raw value (``None``/``NaN``/``pd.NA`` meaning missing)
and returns the cleansed value. None of them raise on bad input except
``decode_int_date`` in strict mode.

Rule families:
    - Text: trim_text, strip_control_chars
    - Code mapping: map_code, normalize_country, normalize_flag
    - Identifiers: split_product_key, strip_prefix, remove_chars
    - Numbers: coalesce_number, reconcile_sales_amount, reconcile_unit_price
    - Dates: decode_int_date, null_future_date

Example:
    >>> from medallion.cleansing import map_code, decode_int_date, PRODUCT_LINE_CODES
    >>>
    >>> map_code(' r ', PRODUCT_LINE_CODES)
    'Road'
    >>> decode_int_date(20230615)
    datetime.date(2023, 6, 15)
    >>> decode_int_date(2023061) is None
    True
"""

from datetime import date, datetime
from typing import Any, Mapping, Optional, Tuple

import pandas as pd

NOT_AVAILABLE = 'n/a'

MARITAL_STATUS_CODES = {'S': 'Single', 'M': 'Married'}
CUSTOMER_GENDER_CODES = {'F': 'Female', 'M': 'Male'}
ERP_GENDER_CODES = {'F': 'Female', 'FEMALE': 'Female', 'M': 'Male', 'MALE': 'Male'}
PRODUCT_LINE_CODES = {'M': 'Mountain', 'R': 'Road', 'S': 'Other Sales', 'T': 'Touring'}
COUNTRY_CODES = {'DE': 'Germany', 'US': 'United States', 'USA': 'United States'}

CATEGORY_ID_LENGTH = 5
PRODUCT_KEY_OFFSET = 6
ENCODED_DATE_DIGITS = 8


class DateDecodeError(ValueError):
    """An 8-digit encoded date that is not a real calendar date."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid encoded date: {value!r} is not a valid YYYYMMDD date")


def is_missing(value: Any) -> bool:
    """True for None, NaN, NaT and pd.NA."""
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def trim_text(value: Any) -> Optional[str]:
    """Strip surrounding whitespace; missing stays None."""
    if is_missing(value):
        return None
    return str(value).strip()


def strip_control_chars(value: Any) -> Optional[str]:
    """Remove every carriage return and line feed, then trim."""
    if is_missing(value):
        return None
    return str(value).replace('\r', '').replace('\n', '').strip()


# ---------------------------------------------------------------------------
# Code mapping
# ---------------------------------------------------------------------------

def map_code(value: Any, mapping: Mapping[str, str]) -> str:
    """
    Map a raw code to its label, case-insensitively.

    Control characters and surrounding whitespace are removed before the
    lookup. Anything not in ``mapping`` (missing, empty, unknown) maps to
    ``n/a``; the result is never None.

    Args:
        value: Raw code
        mapping: Upper-case code → label

    Returns:
        Label from ``mapping`` or ``n/a``
    """
    cleaned = strip_control_chars(value)
    if not cleaned:
        return NOT_AVAILABLE
    return mapping.get(cleaned.upper(), NOT_AVAILABLE)


def normalize_country(value: Any) -> str:
    """DE → Germany, US/USA → United States, blank → n/a, otherwise the cleaned value."""
    cleaned = strip_control_chars(value)
    if not cleaned:
        return NOT_AVAILABLE
    return COUNTRY_CODES.get(cleaned.upper(), cleaned)


def normalize_flag(value: Any) -> str:
    """Blank → n/a, otherwise the cleaned value unchanged."""
    cleaned = strip_control_chars(value)
    return cleaned if cleaned else NOT_AVAILABLE


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

def split_product_key(value: Any) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a product business key into (category id, product key).

    Characters 1-5 become the category id with ``-`` replaced by ``_``;
    character 6 is a separator and is dropped; characters 7 onward are the
    product key.

    Example:
        >>> split_product_key('CO-RF-FR-R92B-58')
        ('CO_RF', 'FR-R92B-58')
    """
    if is_missing(value):
        return None, None
    raw = str(value)
    category_id = raw[:CATEGORY_ID_LENGTH].replace('-', '_')
    product_key = raw[PRODUCT_KEY_OFFSET:]
    return category_id, product_key


def strip_prefix(value: Any, prefix: str) -> Optional[str]:
    """Remove ``prefix`` (case-sensitive) from the start of the value."""
    if is_missing(value):
        return None
    text = str(value)
    return text[len(prefix):] if text.startswith(prefix) else text


def remove_chars(value: Any, chars: str) -> Optional[str]:
    """Remove every occurrence of each character in ``chars``."""
    if is_missing(value):
        return None
    text = str(value)
    for char in chars:
        text = text.replace(char, '')
    return text


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

def coalesce_number(value: Any, default: int = 0) -> int:
    """Replace a missing number with ``default``."""
    return default if is_missing(value) else int(value)


def reconcile_sales_amount(sales: Any, quantity: Any, price: Any) -> Optional[int]:
    """
    Return a sales amount consistent with quantity and price.

    The expected amount is ``quantity * |price|``. A missing, non-positive or
    inconsistent amount is replaced by the expected amount. When the expected
    amount cannot be computed (missing quantity or price) a positive amount is
    kept as given.

    Example:
        >>> reconcile_sales_amount(999, 3, 10)
        30
        >>> reconcile_sales_amount(30, 3, None)
        30
    """
    expected = None
    if not is_missing(quantity) and not is_missing(price):
        expected = int(quantity) * abs(int(price))

    if is_missing(sales) or sales <= 0:
        return expected
    if expected is not None and sales != expected:
        return expected
    return int(sales)


def reconcile_unit_price(price: Any, sales: Any, quantity: Any) -> Optional[int]:
    """
    Return a positive unit price, derived from sales / quantity when needed.

    A missing or non-positive price is recomputed from the raw sales amount
    with integer division truncating toward zero. Zero or missing quantity
    gives None instead of an error.

    Example:
        >>> reconcile_unit_price(None, 30, 3)
        10
        >>> reconcile_unit_price(None, 30, 0) is None
        True
    """
    if not is_missing(price) and price > 0:
        return int(price)
    if is_missing(sales) or is_missing(quantity) or quantity == 0:
        return None

    sales, quantity = int(sales), int(quantity)
    quotient = abs(sales) // abs(quantity)
    return quotient if (sales < 0) == (quantity < 0) else -quotient


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def decode_int_date(value: Any, strict: bool = False) -> Optional[date]:
    """
    Decode a YYYYMMDD integer into a date.

    Zero, negative values and anything that is not exactly 8 decimal digits
    decode to None without further checks. An 8-digit value that is not a
    real calendar date (e.g. month 13) decodes to None, or raises
    ``DateDecodeError`` when ``strict`` is set.

    Args:
        value: Raw encoded date (int, integral float or digit string)
        strict: Raise instead of returning None for impossible 8-digit dates

    Returns:
        Decoded date or None

    Raises:
        DateDecodeError: In strict mode, for an impossible 8-digit date
    """
    if is_missing(value):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    if number != value and not isinstance(value, str):
        return None
    if number <= 0 or len(str(number)) != ENCODED_DATE_DIGITS:
        return None

    digits = str(number)
    try:
        return date(int(digits[:4]), int(digits[4:6]), int(digits[6:]))
    except ValueError:
        if strict:
            raise DateDecodeError(value)
        return None


def null_future_date(value: Any, as_of: datetime) -> Optional[date]:
    """Return the value as a date, or None when missing or later than ``as_of``."""
    if is_missing(value):
        return None
    try:
        timestamp = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if timestamp > pd.Timestamp(as_of):
        return None
    return timestamp.date()
