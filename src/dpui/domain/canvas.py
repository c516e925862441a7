"""Real display space <-> bounded canvas coordinate transform.

Real coordinates are arbitrary integers (negative origins are common in a
multi-monitor spread). The canvas is a bounded pixel area. The transform is
fitted once from a set of displays and then used in both directions:

- forward: ``canvas = (real - min) * scale + margin``
- inverse: ``real = round((canvas - margin) / scale + min)``

A drag gesture captures the transform at pointer-down so the mapping stays
stable while the dragged display changes the bounding box.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from dpui.domain.display import Display

DEFAULT_MAX_WIDTH_PX = 500.0
DEFAULT_MAX_HEIGHT_PX = 400.0
DEFAULT_SCALE_CAP = 0.15
DEFAULT_MARGIN_PX = 20.0


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box in real display space."""

    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y


DEFAULT_BOUNDS = Bounds(0, 0, 2560, 1440)


def compute_bounds(displays: Iterable[Display], *, default: Bounds = DEFAULT_BOUNDS) -> Bounds:
    """Bounding box over all origins and origin+resolution extents."""
    items = list(displays)
    if not items:
        return default
    return Bounds(
        min_x=min(d.origin[0] for d in items),
        min_y=min(d.origin[1] for d in items),
        max_x=max(d.origin[0] + d.width for d in items),
        max_y=max(d.origin[1] + d.height for d in items),
    )


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def fit_scale(bounds: Bounds, max_width: float, max_height: float, cap: float) -> float:
    """Largest scale that fits *bounds* into the canvas, never above *cap*.

    Zero-size extents do not constrain the scale; the result is always
    finite and positive.
    """
    candidates = [cap]
    if bounds.width > 0:
        candidates.append(max_width / bounds.width)
    if bounds.height > 0:
        candidates.append(max_height / bounds.height)
    scale = min(candidates)
    if not math.isfinite(scale) or scale <= 0:
        msg = f"cannot fit canvas: scale={scale}"
        raise ValueError(msg)
    return scale


@dataclass(frozen=True)
class CanvasRect:
    """A display card placed on the canvas."""

    display_id: str
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class CanvasTransform:
    """Fitted mapping between real display space and the canvas."""

    bounds: Bounds
    scale: float
    margin: float = DEFAULT_MARGIN_PX

    @classmethod
    def fit(
        cls,
        displays: Iterable[Display],
        *,
        max_width: float = DEFAULT_MAX_WIDTH_PX,
        max_height: float = DEFAULT_MAX_HEIGHT_PX,
        scale_cap: float = DEFAULT_SCALE_CAP,
        margin: float = DEFAULT_MARGIN_PX,
        default_bounds: Bounds = DEFAULT_BOUNDS,
    ) -> CanvasTransform:
        bounds = compute_bounds(displays, default=default_bounds)
        return cls(
            bounds=bounds,
            scale=fit_scale(bounds, max_width, max_height, scale_cap),
            margin=margin,
        )

    @property
    def canvas_size(self) -> tuple[float, float]:
        """Canvas extent including the margin on every side."""
        return (
            self.bounds.width * self.scale + 2 * self.margin,
            self.bounds.height * self.scale + 2 * self.margin,
        )

    def to_canvas(self, x: float, y: float) -> tuple[float, float]:
        return (
            (x - self.bounds.min_x) * self.scale + self.margin,
            (y - self.bounds.min_y) * self.scale + self.margin,
        )

    def to_real(self, canvas_x: float, canvas_y: float) -> tuple[int, int]:
        return (
            round_half_away((canvas_x - self.margin) / self.scale + self.bounds.min_x),
            round_half_away((canvas_y - self.margin) / self.scale + self.bounds.min_y),
        )

    def place(self, display: Display) -> CanvasRect:
        x, y = self.to_canvas(*display.origin)
        return CanvasRect(
            display_id=display.id,
            x=x,
            y=y,
            width=display.width * self.scale,
            height=display.height * self.scale,
        )


class DragGesture:
    """Pointer-driven move of one display card.

    Pointer positions are canvas coordinates. :meth:`move` returns the new
    real origin; the caller applies it as a local, speculative update.
    """

    def __init__(
        self,
        transform: CanvasTransform,
        display: Display,
        pointer: tuple[float, float],
    ) -> None:
        self.transform = transform
        self.display_id = display.id
        card_x, card_y = transform.to_canvas(*display.origin)
        self.offset = (pointer[0] - card_x, pointer[1] - card_y)
        self.active = True

    def move(self, pointer: tuple[float, float]) -> tuple[int, int]:
        if not self.active:
            msg = f"drag of {self.display_id} already ended"
            raise RuntimeError(msg)
        return self.transform.to_real(pointer[0] - self.offset[0], pointer[1] - self.offset[1])

    def end(self) -> None:
        self.active = False
