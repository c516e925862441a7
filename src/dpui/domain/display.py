"""Display and DeviceSet models.

A DeviceSet is produced fresh by every ``list()`` call on the display
service. The only in-place change the core ever makes is the speculative
origin update during a drag, which the next successful ``list()`` replaces.
"""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, Field, field_validator, model_validator


class Rotation(IntEnum):
    """Legal display rotations, in degrees."""

    NONE = 0
    QUARTER = 90
    HALF = 180
    THREE_QUARTER = 270


VALID_ROTATIONS: frozenset[int] = frozenset(int(r) for r in Rotation)


class Display(BaseModel):
    """One physical output as reported by the display tool."""

    model_config = {"frozen": True}

    id: str = Field(min_length=1)
    resolution: tuple[int, int]
    origin: tuple[int, int] = (0, 0)
    rotation: int = 0
    enabled: bool = True

    @field_validator("id")
    @classmethod
    def _no_whitespace(cls, value: str) -> str:
        if any(ch.isspace() for ch in value):
            msg = f"display id must not contain whitespace: {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("resolution")
    @classmethod
    def _positive_resolution(cls, value: tuple[int, int]) -> tuple[int, int]:
        width, height = value
        if width <= 0 or height <= 0:
            msg = f"resolution must be positive, got {width}x{height}"
            raise ValueError(msg)
        return value

    @field_validator("rotation")
    @classmethod
    def _legal_rotation(cls, value: int) -> int:
        if value not in VALID_ROTATIONS:
            msg = f"rotation must be one of {sorted(VALID_ROTATIONS)}, got {value}"
            raise ValueError(msg)
        return value

    @property
    def width(self) -> int:
        return self.resolution[0]

    @property
    def height(self) -> int:
        return self.resolution[1]

    @property
    def resolution_label(self) -> str:
        """Resolution as ``WIDTHxHEIGHT``."""
        return f"{self.width}x{self.height}"

    def with_origin(self, x: int, y: int) -> Display:
        return self.model_copy(update={"origin": (x, y)})


class DeviceSet(BaseModel):
    """Ordered displays plus the raw tool output that produced them."""

    model_config = {"frozen": True}

    displays: tuple[Display, ...] = ()
    raw: str = ""

    @model_validator(mode="after")
    def _unique_ids(self) -> DeviceSet:
        seen: set[str] = set()
        for display in self.displays:
            if display.id in seen:
                msg = f"duplicate display id: {display.id}"
                raise ValueError(msg)
            seen.add(display.id)
        return self

    def __len__(self) -> int:
        return len(self.displays)

    @property
    def ids(self) -> list[str]:
        return [d.id for d in self.displays]

    @property
    def enabled_count(self) -> int:
        return sum(1 for d in self.displays if d.enabled)

    def get(self, display_id: str) -> Display | None:
        for display in self.displays:
            if display.id == display_id:
                return display
        return None

    def with_origin(self, display_id: str, x: int, y: int) -> DeviceSet:
        """Return a copy with one display moved; unknown ids raise KeyError."""
        if self.get(display_id) is None:
            raise KeyError(display_id)
        displays = tuple(
            d.with_origin(x, y) if d.id == display_id else d for d in self.displays
        )
        return self.model_copy(update={"displays": displays})
