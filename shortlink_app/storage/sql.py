"""
SQL helpers shared by the storage strategies.

Calendar truncation differs per backend: PostgreSQL has `date_trunc`,
SQLite only has `strftime`. Both truncate in the store's own time zone.
The unit/format is rendered as a literal so that the SELECT and GROUP BY
expressions compile to identical SQL (PostgreSQL rejects the query when
they differ only by bound parameters).
"""

from sqlalchemy import DateTime, func, literal_column, type_coerce
from sqlalchemy.exc import IntegrityError


SQLITE_TRUNC_FORMATS = {
    "day": "%Y-%m-%d 00:00:00",
    "month": "%Y-%m-01 00:00:00",
}

# SQLSTATE for unique_violation
PG_UNIQUE_VIOLATION = "23505"


def truncate_datetime(unit: str, column, dialect_name: str):
    """Truncate a timestamp column to the start of its day or month."""
    if unit not in SQLITE_TRUNC_FORMATS:
        raise ValueError(f"Unsupported truncation unit: {unit}")

    if dialect_name == "sqlite":
        fmt = SQLITE_TRUNC_FORMATS[unit]
        return type_coerce(func.strftime(literal_column(f"'{fmt}'"), column), DateTime())

    return func.date_trunc(literal_column(f"'{unit}'"), column)


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the IntegrityError comes from a UNIQUE constraint."""
    orig = exc.orig
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code is not None:
        return code == PG_UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(orig)
