"""Column types shared by the models."""

from typing import Any, Optional, Type

from pydantic import BaseModel
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator


class PydanticJSON(TypeDecorator):
    """
    JSON column holding one pydantic model.

    Values are validated on the way in and rebuilt as model instances on the
    way out, so callers never see a raw dict. Stored as JSONB on PostgreSQL.
    Assign a new instance to persist a change; in-place mutation is not
    tracked.
    """

    impl = JSON
    cache_ok = True

    def __init__(self, model: Type[BaseModel], *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.model = model

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value: Any, dialect) -> Optional[dict]:
        if value is None:
            return None
        if not isinstance(value, self.model):
            value = self.model.model_validate(value)
        return value.model_dump(mode="json")

    def process_result_value(self, value: Any, dialect) -> Optional[BaseModel]:
        if value is None:
            return None
        return self.model.model_validate(value)
