import re
import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .base import DuplicateError
from .duplicate_entry import parse_duplicate_entry, normalize_mysql_error

logger = logging.getLogger(__name__)

# https://www.postgresql.org/docs/current/errcodes-appendix.html
PG_UNIQUE_VIOLATION = "23505"

# -----------------------
# Column extraction helpers
# -----------------------

def _extract_columns_postgres(msg: str) -> list[str] | None:
    """
    Extract column names from a Postgres unique violation detail:
      'DETAIL:  Key (name, city)=(nafi, dhaka) already exists.'
    """
    m = re.search(r'key \((?P<cols>[^)]+)\)=', msg, flags=re.IGNORECASE)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]
    return None


def _extract_tokens_sqlite(msg: str) -> list[str] | None:
    """
    SQLite: 'UNIQUE constraint failed: users.name, users.city' -> ['users', 'name', 'city']
    """
    m = re.search(r'UNIQUE constraint failed: (?P<cols>.+)$', msg, flags=re.IGNORECASE | re.MULTILINE)
    if not m:
        return None

    qualified = [c.strip() for c in re.split(r',\s*', m.group("cols")) if c.strip()]
    table = qualified[0].split(".")[0] if "." in qualified[0] else None
    columns = [c.split(".")[-1] for c in qualified]
    return [table, *columns] if table else columns


def _postgres_duplicate(orig) -> tuple[bool, list[str] | None, str | None]:
    # psycopg2 / asyncpg adapter expose `pgcode`, psycopg 3 exposes `sqlstate`
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode != PG_UNIQUE_VIOLATION:
        return False, None, None

    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag else None
    table_name = getattr(diag, "table_name", None) if diag else None

    logger.debug("Postgres integrity diagnostic", extra={"pgcode": pgcode, "constraint_name": constraint_name})

    columns = _extract_columns_postgres(str(orig)) or []
    tokens = [table_name, *columns] if table_name else columns
    return True, tokens or None, constraint_name


# -----------------------
# Classifier entry point
# -----------------------

def classify_duplicate_key(exc: BaseException) -> tuple[bool, list[str] | None, str | None]:
    """
    Decide whether a write failure is a uniqueness violation.

    Tries, in order:
      1. the MySQL "Error 1062 (23000): Duplicate entry ..." text (also rebuilt from
         DB-API args for PyMySQL-style drivers),
      2. Postgres SQLSTATE 23505,
      3. SQLite "UNIQUE constraint failed" messages.

    Returns:
        (is_duplicate, tokens, constraint_name)
    """
    orig = getattr(exc, "orig", None)
    if orig is None:
        orig = exc

    for candidate in (normalize_mysql_error(orig), str(orig), str(exc)):
        matched, tokens = parse_duplicate_entry(candidate)
        if matched:
            return True, tokens, None

    matched, tokens, constraint_name = _postgres_duplicate(orig)
    if matched:
        return True, tokens, constraint_name

    tokens = _extract_tokens_sqlite(str(orig))
    if tokens:
        return True, tokens, None

    return False, None, None


def duplicate_error_for(tokens: list[str] | None, constraint: str | None, model_name: str | None = None) -> DuplicateError:
    """
    Build the app-level DuplicateError. The raw DB message is never part of it.
    """
    model_part = model_name or "Record"
    if tokens:
        return DuplicateError(f"{model_part} already exists for: {', '.join(tokens)}", fields=tokens, constraint=constraint)
    if constraint:
        return DuplicateError(f"{model_part} already exists (constraint: {constraint})", constraint=constraint)
    return DuplicateError(f"{model_part} already exists (unique constraint)")


# -----------------------
# Async context manager to DRY error handling in repositories
# -----------------------

@asynccontextmanager
async def db_error_handler(db: AsyncSession, model_name: str | None = None, *, map_duplicates: bool = True):
    """
    Usage:
        async with db_error_handler(self.db, self.model.__name__):
            ... DB writes that may raise IntegrityError ...

    The writes run inside a SAVEPOINT. A failed write rolls back only that
    savepoint, so earlier uncommitted work in the caller's transaction survives
    and the session stays usable. With `map_duplicates`, a uniqueness violation
    is re-raised as DuplicateError; every other error is re-raised unchanged.
    """
    try:
        async with db.begin_nested():
            yield
    except IntegrityError as exc:
        if map_duplicates:
            is_duplicate, tokens, constraint = classify_duplicate_key(exc)
            if is_duplicate:
                # Expected client-level scenario; no raw DB text at INFO
                logger.info(
                    "mapper.duplicate_detected",
                    extra={"model": model_name, "fields": tokens, "constraint": constraint},
                )
                raise duplicate_error_for(tokens, constraint, model_name) from exc

        logger.warning("mapper.integrity_error", extra={"model": model_name})
        raise
    except SQLAlchemyError:
        logger.exception("Unexpected DB error for %s", model_name, extra={"model": model_name})
        raise
