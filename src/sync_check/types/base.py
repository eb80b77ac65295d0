"""Reusable, strict base models for sync-check records."""

from typing import Annotated, Final

from pydantic import BaseModel, ConfigDict, Field

UINT64_MAX: Final = 2**64 - 1
"""Largest value representable as an unsigned 64-bit integer."""

Uint64 = Annotated[int, Field(ge=0, le=UINT64_MAX)]
"""Unsigned 64-bit integer, used for block heights and slots."""


class StrictBaseModel(BaseModel):
    """
    A strict, immutable pydantic base model.

    Records built from upstream responses are validated once on construction
    and never mutated afterwards.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        strict=True,
        validate_default=True,
    )
