"""Reusable Polars expressions for monitor rollups."""

import polars as pl

from ..models.monitor import MONEY_FIELDS

BLANK_DIMENSION = "(blank)"

SUM_FIELDS = (
    "sum_impressions",
    "active_campaign_count",
    "data_impressions",
    "delivered_lines",
    *MONEY_FIELDS,
)


# =============================================================================
# TIME BUCKETS
# =============================================================================


def quarter_key_expr(col: str = "year_month") -> pl.Expr:
    """``YYYY-MM`` -> ``YYYY-Q{1-4}``; quarter = ceil(month / 3)."""
    month = pl.col(col).str.slice(5, 2).cast(pl.Int32)
    return pl.concat_str(
        [pl.col(col).str.slice(0, 4), pl.lit("-Q"), ((month + 2) // 3).cast(pl.Utf8)]
    )


def bucket_key_expr(granularity: str, col: str = "year_month") -> pl.Expr:
    """Bucket key for ``yearMonth`` (passthrough), ``quarter`` or ``year``."""
    if granularity == "yearMonth":
        expr = pl.col(col)
    elif granularity == "quarter":
        expr = quarter_key_expr(col)
    elif granularity == "year":
        expr = pl.col(col).str.slice(0, 4)
    else:
        raise ValueError(f"Unknown granularity: {granularity}")
    return expr.alias("bucket")


def monitor_sum_exprs() -> list[pl.Expr]:
    """Sum every numeric monitor field within a bucket."""
    return [pl.col(name).sum().alias(name) for name in SUM_FIELDS]


# =============================================================================
# DIMENSIONS
# =============================================================================


def dimension_value_expr(col: str = "dimension_value") -> pl.Expr:
    """Trimmed dimension value; null or empty collapses to ``(blank)``."""
    trimmed = pl.col(col).fill_null("").str.strip_chars()
    return (
        pl.when(trimmed == "")
        .then(pl.lit(BLANK_DIMENSION))
        .otherwise(trimmed)
        .alias(col)
    )


def dimension_aggregates_expr() -> list[pl.Expr]:
    """Impression sum and distinct contributing campaigns per dimension value."""
    return [
        pl.col("sum_impressions").sum().alias("sum_impressions"),
        pl.col("campaign_id").n_unique().alias("active_campaign_count"),
    ]
