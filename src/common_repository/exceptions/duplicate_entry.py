import re
import logging

logger = logging.getLogger(__name__)

# =================================================================================================================
# MySQL duplicate-key message
# =================================================================================================================

# Exact text produced for a unique index violation (MySQL error 1062, SQLSTATE 23000), e.g.
#   Error 1062 (23000): Duplicate entry '5-dhaka' for key 'users.idx_user_city'
# Word classes are ASCII-only so the match is byte-for-byte with the engine output.
DUPLICATE_ENTRY_PATTERN = re.compile(
    r"Error 1062 \(23000\): Duplicate entry '(?P<entry>[\w-]+)' for key '(?P<key>[\w.]+)'",
    flags=re.ASCII,
)

MYSQL_DUPLICATE_ENTRY_CODE = 1062
MYSQL_DUPLICATE_ENTRY_SQLSTATE = "23000"


def parse_duplicate_entry(error: BaseException | str | None) -> tuple[bool, list[str] | None]:
    """
    Check whether an error message is a duplicate-entry violation.

    Returns:
        (True, tokens) on a match, where tokens is the table name taken from the key
        followed by every non-empty hyphen-separated segment of the duplicated entry.
        (False, None) for anything else, including None or an empty message.

    Composite unique keys are reported as one hyphen-joined entry, so a value that
    itself contains a hyphen is split as if it were two values.
    """
    if error is None:
        return False, None

    message = str(error)
    if not message:
        return False, None

    match = DUPLICATE_ENTRY_PATTERN.search(message)
    if match is None:
        return False, None

    table = match.group("key").split(".")[0]
    tokens = [table]
    tokens.extend(part for part in match.group("entry").split("-") if part)

    logger.debug("Duplicate entry parsed", extra={"table": table, "token_count": len(tokens)})
    return True, tokens


def normalize_mysql_error(orig) -> str | None:
    """
    Render a DB-API MySQL exception into the canonical "Error 1062 (23000): ..." text.

    PyMySQL, aiomysql and asyncmy raise IntegrityError with args (1062, "Duplicate entry ...").
    Returns None when `orig` does not carry that shape.
    """
    args = getattr(orig, "args", None)
    if not args or len(args) < 2:
        return None

    code, text = args[0], args[1]
    if code != MYSQL_DUPLICATE_ENTRY_CODE or not isinstance(text, str):
        return None

    return f"Error {MYSQL_DUPLICATE_ENTRY_CODE} ({MYSQL_DUPLICATE_ENTRY_SQLSTATE}): {text}"
