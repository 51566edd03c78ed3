"""
=================================================
Entity transforms: Bronze snapshot → Silver rows
=================================================

One pure function per CRM/ERP entity. Each takes the raw Bronze snapshot as
a DataFrame and returns the cleansed Silver DataFrame, columns ordered as in
``models.warehouse_models.SILVER_TABLES``. Nothing here touches the database.

Derived columns:
    - deduplicate_customers: one row per customer id, latest create date wins
    - derive_validity_window: product end date from the next start date
    - Sales dates decoded from YYYYMMDD integers, sales/price reconciled

Example:
    >>> from datetime import datetime
    >>> from medallion.transforms import TransformOptions, transform_crm_sales_details
    >>>
    >>> silver_frame = transform_crm_sales_details(bronze_frame, TransformOptions(as_of=datetime.now()))
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

import pandas as pd

from core.logger import get_logger
from medallion.cleansing import (
    CUSTOMER_GENDER_CODES,
    ERP_GENDER_CODES,
    MARITAL_STATUS_CODES,
    PRODUCT_LINE_CODES,
    DateDecodeError,
    coalesce_number,
    decode_int_date,
    map_code,
    normalize_country,
    normalize_flag,
    null_future_date,
    reconcile_sales_amount,
    reconcile_unit_price,
    remove_chars,
    split_product_key,
    strip_prefix,
    trim_text,
)
from models.warehouse_models import BRONZE_TABLES, SILVER_TABLES, column_names

logger = get_logger(__name__)

ERP_CUSTOMER_PREFIX = 'NAS'


class SilverTransformError(Exception):
    """Exception raised when a Bronze snapshot cannot be transformed."""
    pass


class RawShapeError(SilverTransformError):
    """Raised when a Bronze snapshot is missing expected columns."""
    pass


@dataclass
class TransformOptions:
    """Per-run transform settings.

    Attributes:
        as_of: Load time; ERP birth dates after it are nulled
        strict_dates: Raise on impossible 8-digit encoded dates instead of nulling them
    """

    as_of: datetime = field(default_factory=datetime.now)
    strict_dates: bool = False


# ---------------------------------------------------------------------------
# Column helpers
# ---------------------------------------------------------------------------

def _prepare(raw: pd.DataFrame, table_name: str) -> pd.DataFrame:
    expected = column_names(BRONZE_TABLES[table_name])
    missing = [name for name in expected if name not in raw.columns]
    if missing:
        raise RawShapeError(f"{table_name}: missing columns {missing}")
    return raw.reset_index(drop=True)


def _finish(columns: dict, table_name: str) -> pd.DataFrame:
    return pd.DataFrame(columns, columns=column_names(SILVER_TABLES[table_name]))


def _to_int(series: pd.Series) -> pd.Series:
    return pd.to_numeric(series).astype('Int64')


def _to_date(series: pd.Series) -> List:
    timestamps = pd.to_datetime(series, errors='coerce')
    return [None if pd.isna(ts) else ts.date() for ts in timestamps]


def _decode_dates(series: pd.Series, column: str, strict: bool) -> List:
    decoded = []
    invalid = 0
    for value in series:
        try:
            decoded.append(decode_int_date(value, strict=True))
        except DateDecodeError:
            if strict:
                raise
            invalid += 1
            decoded.append(None)
    if invalid:
        logger.warning(f"{column}: {invalid} invalid 8-digit date(s) set to NULL")
    return decoded


# ---------------------------------------------------------------------------
# Derived columns
# ---------------------------------------------------------------------------

def deduplicate_customers(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Keep one row per ``cst_id``: the one with the latest ``cst_create_date``.

    Rows with a null id are dropped first. A null create date ranks after any
    dated row; among equal dates the row appearing first in the source wins.
    Survivors keep their source order.

    Args:
        frame: Raw customer rows

    Returns:
        Deduplicated rows with the original index
    """
    keyed = frame[frame['cst_id'].notna()]
    ranked = keyed.assign(_created=pd.to_datetime(keyed['cst_create_date'], errors='coerce'))
    ranked = ranked.sort_values('_created', ascending=False, kind='mergesort', na_position='last')
    latest = ranked.drop_duplicates(subset='cst_id', keep='first')
    return latest.drop(columns='_created').sort_index()


def derive_validity_window(keys: pd.Series, starts: pd.Series) -> List:
    """
    Compute each version's end date from the next version's start date.

    Rows are grouped by key and ordered by start date, rows without a start
    date first; a row's end date is the following row's start date minus one
    day. The latest version of each key gets None.

    Example:
        >>> starts = pd.Series(pd.to_datetime(['2023-01-01', '2023-06-01', '2024-01-01']))
        >>> derive_validity_window(pd.Series(['A', 'A', 'A']), starts)
        [datetime.date(2023, 5, 31), datetime.date(2023, 12, 31), None]

    Returns:
        End dates aligned with ``starts``
    """
    window = pd.DataFrame({'key': keys, 'start': pd.to_datetime(starts, errors='coerce')})
    ordered = window.sort_values(['key', 'start'], kind='mergesort', na_position='first')
    next_start = ordered.groupby('key', sort=False, dropna=False)['start'].shift(-1)
    ends = (next_start - pd.Timedelta(days=1)).reindex(window.index)
    return _to_date(ends)


# ---------------------------------------------------------------------------
# Entity transforms
# ---------------------------------------------------------------------------

def transform_crm_cust_info(raw: pd.DataFrame, options: TransformOptions) -> pd.DataFrame:
    """Deduplicate customers, trim names and map marital status / gender codes."""
    frame = _prepare(raw, 'crm_cust_info')
    frame = deduplicate_customers(frame).reset_index(drop=True)

    return _finish({
        'cst_id': _to_int(frame['cst_id']),
        'cst_key': frame['cst_key'],
        'cst_firstname': [trim_text(v) for v in frame['cst_firstname']],
        'cst_lastname': [trim_text(v) for v in frame['cst_lastname']],
        'cst_marital_status': [map_code(v, MARITAL_STATUS_CODES) for v in frame['cst_marital_status']],
        'cst_gndr': [map_code(v, CUSTOMER_GENDER_CODES) for v in frame['cst_gndr']],
        'cst_create_date': _to_date(frame['cst_create_date']),
    }, 'crm_cust_info')


def transform_crm_prd_info(raw: pd.DataFrame, options: TransformOptions) -> pd.DataFrame:
    """Split the product key, default cost, map product line and derive end dates."""
    frame = _prepare(raw, 'crm_prd_info')
    split_keys = [split_product_key(v) for v in frame['prd_key']]
    category_ids = [category_id for category_id, _ in split_keys]
    product_keys = [product_key for _, product_key in split_keys]

    return _finish({
        'prd_id': _to_int(frame['prd_id']),
        'cat_id': category_ids,
        'prd_key': product_keys,
        'prd_nm': frame['prd_nm'],
        'prd_cost': _to_int(pd.Series([coalesce_number(v, 0) for v in frame['prd_cost']], dtype='object')),
        'prd_line': [map_code(v, PRODUCT_LINE_CODES) for v in frame['prd_line']],
        'prd_start_dt': _to_date(frame['prd_start_dt']),
        'prd_end_dt': derive_validity_window(frame['prd_key'], frame['prd_start_dt']),
    }, 'crm_prd_info')


def transform_crm_sales_details(raw: pd.DataFrame, options: TransformOptions) -> pd.DataFrame:
    """Decode order/ship/due dates and reconcile sales amount and unit price."""
    frame = _prepare(raw, 'crm_sales_details')
    rows = list(zip(frame['sls_sales'], frame['sls_quantity'], frame['sls_price']))

    return _finish({
        'sls_ord_num': frame['sls_ord_num'],
        'sls_prd_key': frame['sls_prd_key'],
        'sls_cust_id': _to_int(frame['sls_cust_id']),
        'sls_order_dt': _decode_dates(frame['sls_order_dt'], 'sls_order_dt', options.strict_dates),
        'sls_ship_dt': _decode_dates(frame['sls_ship_dt'], 'sls_ship_dt', options.strict_dates),
        'sls_due_dt': _decode_dates(frame['sls_due_dt'], 'sls_due_dt', options.strict_dates),
        'sls_sales': _to_int(pd.Series(
            [reconcile_sales_amount(s, q, p) for s, q, p in rows], dtype='object'
        )),
        'sls_quantity': _to_int(frame['sls_quantity']),
        'sls_price': _to_int(pd.Series(
            [reconcile_unit_price(p, s, q) for s, q, p in rows], dtype='object'
        )),
    }, 'crm_sales_details')


def transform_erp_cust_az12(raw: pd.DataFrame, options: TransformOptions) -> pd.DataFrame:
    """Strip the NAS id prefix, null future birth dates and normalize gender."""
    frame = _prepare(raw, 'erp_cust_az12')

    return _finish({
        'cid': [strip_prefix(v, ERP_CUSTOMER_PREFIX) for v in frame['cid']],
        'bdate': [null_future_date(v, options.as_of) for v in frame['bdate']],
        'gen': [map_code(v, ERP_GENDER_CODES) for v in frame['gen']],
    }, 'erp_cust_az12')


def transform_erp_loc_a101(raw: pd.DataFrame, options: TransformOptions) -> pd.DataFrame:
    """Remove hyphens from customer ids and normalize country names."""
    frame = _prepare(raw, 'erp_loc_a101')

    return _finish({
        'cid': [remove_chars(v, '-') for v in frame['cid']],
        'cntry': [normalize_country(v) for v in frame['cntry']],
    }, 'erp_loc_a101')


def transform_erp_px_cat_g1v2(raw: pd.DataFrame, options: TransformOptions) -> pd.DataFrame:
    frame = _prepare(raw, 'erp_px_cat_g1v2')

    return _finish({
        'id': frame['id'],
        'cat': frame['cat'],
        'subcat': frame['subcat'],
        'maintenance': [normalize_flag(v) for v in frame['maintenance']],
    }, 'erp_px_cat_g1v2')
