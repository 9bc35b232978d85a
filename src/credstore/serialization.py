from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


@runtime_checkable
class Json(Protocol):
    """Text JSON codec used by credential codecs for their wire models."""

    def to_json(self, obj: BaseModel) -> str:
        ...

    def from_json(self, text: str, model: type[M]) -> M:
        ...


class PydanticJson:
    """
    Compact JSON through pydantic.

    Fields are written under their aliases and `None` fields are omitted, which
    is what the stored credential formats expect.
    """

    def to_json(self, obj: BaseModel) -> str:
        return obj.model_dump_json(by_alias=True, exclude_none=True)

    def from_json(self, text: str, model: type[M]) -> M:
        return model.model_validate_json(text)
