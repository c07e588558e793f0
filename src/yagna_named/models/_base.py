"""Base model for yagna market API documents.

Every market model inherits from :class:`MarketModel` which provides:

* ``alias_generator=to_camel`` so camelCase API keys map
  automatically to snake_case fields.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class MarketModel(BaseModel):
    """Base for market API response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original API response dict."""

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        """Keep the untouched payload next to the parsed fields."""
        if not isinstance(values, dict) or "raw" in values:
            return values
        stashed = dict(values)
        stashed["raw"] = dict(values)
        return stashed
