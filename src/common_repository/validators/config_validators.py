"""Normalizers shared by Settings field validators (run in mode="before")."""


def to_uppercase(value: str | None) -> str | None:
    # " info " -> "INFO"; non-strings are left for pydantic to reject
    if not isinstance(value, str):
        return value
    return value.strip().upper()


def to_lowercase(value: str | None) -> str | None:
    if not isinstance(value, str):
        return value
    return value.strip().lower()
