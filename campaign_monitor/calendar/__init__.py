from .dates import (
    bucket_key,
    date_range,
    days_in_range,
    in_range,
    iter_days,
    parse_date,
    parse_year_month,
    quarter_key,
    to_date,
    year_key,
    year_month,
)

__all__ = [
    "bucket_key",
    "date_range",
    "days_in_range",
    "in_range",
    "iter_days",
    "parse_date",
    "parse_year_month",
    "quarter_key",
    "to_date",
    "year_key",
    "year_month",
]
