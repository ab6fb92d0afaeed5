"""Pressure-sensitive stroke outlines.

The outline polygon of a freehand stroke comes from ``perfect_freehand``;
this module maps the canvas options onto it and turns the polygon into a
closed SVG path. The same points and options always give the same path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import perfect_freehand

from .constants import STROKE_OPTIONS

Vec = Tuple[float, float]
Taper = Union[bool, float]
Easing = Optional[Callable[[float], float]]


@dataclass
class StrokeOptions:
    """Outline options; ``None`` easings keep the library defaults."""

    size: float = 16.0
    thinning: float = 0.5
    smoothing: float = 0.5
    streamline: float = 0.5
    easing: Easing = None
    simulate_pressure: bool = True
    cap_start: bool = True
    taper_start: Taper = False
    taper_start_ease: Easing = None
    cap_end: bool = True
    taper_end: Taper = False
    taper_end_ease: Easing = None
    last: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StrokeOptions":
        start = data.get("start") or {}
        end = data.get("end") or {}
        defaults = cls()
        return cls(
            size=float(data.get("size", defaults.size)),
            thinning=float(data.get("thinning", defaults.thinning)),
            smoothing=float(data.get("smoothing", defaults.smoothing)),
            streamline=float(data.get("streamline", defaults.streamline)),
            easing=data.get("easing"),
            simulate_pressure=bool(data.get("simulate_pressure", defaults.simulate_pressure)),
            cap_start=bool(start.get("cap", defaults.cap_start)),
            taper_start=start.get("taper", defaults.taper_start),
            taper_start_ease=start.get("easing"),
            cap_end=bool(end.get("cap", defaults.cap_end)),
            taper_end=end.get("taper", defaults.taper_end),
            taper_end_ease=end.get("easing"),
            last=bool(data.get("last", defaults.last)),
        )

    def as_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "size": self.size,
            "thinning": self.thinning,
            "smoothing": self.smoothing,
            "streamline": self.streamline,
            "simulate_pressure": self.simulate_pressure,
            "cap_start": self.cap_start,
            "taper_start": self.taper_start,
            "cap_end": self.cap_end,
            "taper_end": self.taper_end,
            "last": self.last,
        }
        for name in ("easing", "taper_start_ease", "taper_end_ease"):
            value = getattr(self, name)
            if value is not None:
                kwargs[name] = value
        return kwargs


def default_stroke_options() -> StrokeOptions:
    """Options used by the sketch canvas."""
    return StrokeOptions.from_mapping(STROKE_OPTIONS)


def stroke_outline(
    points: Sequence[Sequence[float]],
    options: Optional[StrokeOptions] = None,
) -> List[Vec]:
    """Outline polygon for raw ``(x, y, pressure)`` samples."""
    if not points:
        return []
    options = options or StrokeOptions()
    outline = perfect_freehand.get_stroke(
        [tuple(float(value) for value in point) for point in points],
        **options.as_kwargs(),
    )
    return [(float(x), float(y)) for x, y in outline]


def _fmt(value: float) -> str:
    text = f"{value:.2f}"
    return "0.00" if text == "-0.00" else text


def svg_path_from_outline(outline: Sequence[Vec]) -> str:
    """Closed quadratic path through the midpoints of the outline polygon."""
    if not outline:
        return ""

    tokens: List[str] = ["M", _fmt(outline[0][0]), _fmt(outline[0][1]), "Q"]
    n = len(outline)
    for i, (x0, y0) in enumerate(outline):
        x1, y1 = outline[(i + 1) % n]
        tokens.extend([_fmt(x0), _fmt(y0), _fmt((x0 + x1) / 2), _fmt((y0 + y1) / 2)])
    tokens.append("Z")
    return " ".join(tokens)


def render_outline(
    points: Sequence[Sequence[float]],
    options: Optional[StrokeOptions] = None,
) -> str:
    """Filled outline path for a stroke, as SVG path data."""
    return svg_path_from_outline(stroke_outline(points, options or default_stroke_options()))
