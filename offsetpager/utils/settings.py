"""Pagination defaults shared by the pager and its integrations."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from offsetpager.utils.pagination import OutOfBoundsStrategy


class PagerSettings(BaseModel):
    """Validated pagination configuration.

    Attributes:
        out_of_bounds: Strategy applied when a page past the end is requested
        default_page_size: Page size used when a caller does not give one
        max_page_size: Upper bound for caller-supplied page sizes
        fetch_size: Protocol batch size requested from database sources
    """

    model_config = {"frozen": True, "extra": "forbid"}

    out_of_bounds: OutOfBoundsStrategy = OutOfBoundsStrategy.FAIL
    default_page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    fetch_size: int = Field(default=100, ge=1)

    @field_validator("out_of_bounds", mode="before")
    @classmethod
    def _parse_strategy(cls, value: Any) -> Any:
        """Accept member names such as "return_last_page" or "FAIL"."""
        if isinstance(value, str):
            name = value.strip().upper()
            if name in OutOfBoundsStrategy.__members__:
                return OutOfBoundsStrategy[name]
        return value

    @model_validator(mode="after")
    def _check_page_sizes(self) -> PagerSettings:
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size must be <= max_page_size")
        return self


class _SettingsState:
    """Module-wide default settings."""

    def __init__(self) -> None:
        self.settings = PagerSettings()


_state = _SettingsState()


def get_settings() -> PagerSettings:
    """Return the current default settings."""
    return _state.settings


def configure(**overrides: Any) -> PagerSettings:
    """Replace the default settings, keeping fields that are not overridden.

    Args:
        **overrides: PagerSettings fields to change

    Returns:
        The new default settings

    Raises:
        pydantic.ValidationError: If the resulting settings are invalid
    """
    merged = {**_state.settings.model_dump(), **overrides}
    _state.settings = PagerSettings(**merged)
    return _state.settings


def reset_settings() -> None:
    """Restore the built-in defaults."""
    _state.settings = PagerSettings()
