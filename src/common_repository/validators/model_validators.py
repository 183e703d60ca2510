from typing import Iterable

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import ColumnProperty


def get_column_attributes(model) -> set[str]:
    """
    Return the attribute names of the model's mapped columns.
    - model: the SQLAlchemy model class (not instance)
    """
    mapper = sa_inspect(model)
    return {attr.key for attr in mapper.attrs if isinstance(attr, ColumnProperty)}


def find_unknown_model_kwargs(model, kwargs: Iterable[str]) -> list[str]:
    """
    Return the keys that are not mapped attributes of the model.
    - model: the SQLAlchemy model class (not instance)
    - kwargs: incoming keys (a dict works too) to validate
    """
    mapper = sa_inspect(model)
    # mapper.attrs includes columns and relationships; attr.key is the name callers use
    allowed = {attr.key for attr in mapper.attrs}
    return [k for k in kwargs if k not in allowed]


def get_primary_key_attribute(model) -> str:
    """
    Return the attribute name of the model's primary key.
    Composite primary keys are not supported by id-based operations.
    """
    mapper = sa_inspect(model)
    primary_key = mapper.primary_key
    if len(primary_key) != 1:
        raise ValueError(f"{model.__name__} must have exactly one primary key column, found {len(primary_key)}")
    return mapper.get_property_by_column(primary_key[0]).key
