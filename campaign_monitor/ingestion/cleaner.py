"""Column cleaning for imported campaign CSVs using Polars expressions."""

import polars as pl

# Tried in order; the first format that parses wins. Two-digit years come
# before four-digit ones so "3/1/25" is not read as year 25.
DATE_FORMATS = (
    "%m/%d/%y",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%d %b %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %B %Y",
)


def clean_date_column(col_name: str) -> pl.Expr:
    """Parse a string column to ``Date``; unparseable values become null.

    Handles:
    - ISO ``YYYY-MM-DD``, with or without a time suffix
    - US ``M/D/YY`` and ``M/D/YYYY``
    - Long forms like ``Mar 1, 2025`` and ``1 March 2025``
    """
    col = pl.col(col_name).cast(pl.Utf8).str.strip_chars()
    return pl.coalesce(
        [col.str.slice(0, 10).str.to_date("%Y-%m-%d", strict=False)]
        + [col.str.to_date(fmt, strict=False) for fmt in DATE_FORMATS]
    ).alias(col_name)


def clean_goal_column(col_name: str) -> pl.Expr:
    """Integer goal: commas removed, leading integer kept, non-numeric -> 0, clamped >= 0."""
    return (
        pl.col(col_name)
        .cast(pl.Utf8)
        .fill_null("0")
        .str.replace_all(",", "")
        .str.strip_chars()
        .str.extract(r"^([+-]?\d+)", 1)
        .cast(pl.Int64, strict=False)
        .fill_null(0)
        .clip(lower_bound=0)
        .alias(col_name)
    )


def clean_text_column(col_name: str) -> pl.Expr:
    """Trimmed string; null becomes empty."""
    return pl.col(col_name).cast(pl.Utf8).fill_null("").str.strip_chars().alias(col_name)
