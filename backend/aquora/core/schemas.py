from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Envelope(CamelModel, Generic[T]):
    success: bool = True
    data: T


class ErrorBody(CamelModel):
    message: str
    code: str | None = None
    details: Any = None


class ErrorEnvelope(CamelModel):
    success: bool = False
    error: ErrorBody
