"""Data types for knitspace sketches.

This module contains the core data structures shared by the capture
surface, the submission coordinator and the spec compiler.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class StrokePoint:
    """A single pointer sample in a stroke."""

    x: float
    y: float
    pressure: float = 0.5

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.pressure)


@dataclass
class Stroke:
    """A freehand stroke captured on the drawing surface.

    ``id`` is the creation timestamp in milliseconds and doubles as the
    sort/identity key.
    """

    id: int
    points: List[StrokePoint] = field(default_factory=list)

    def point_tuples(self) -> List[Tuple[float, float, float]]:
        return [pt.as_tuple() for pt in self.points]


class EntryStatus(Enum):
    """Lifecycle of one generation attempt."""

    PENDING = "pending"
    READY = "ready"
    ERROR = "error"


@dataclass
class SketchEntry:
    """A submitted snapshot and the UI spec streamed back for it."""

    id: str
    image_url: str
    spec: Optional[Dict[str, Any]] = None
    status: EntryStatus = EntryStatus.PENDING
    created_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "imageUrl": self.image_url,
            "spec": self.spec,
            "status": self.status.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SketchEntry":
        try:
            status = EntryStatus(data.get("status", EntryStatus.READY.value))
        except (TypeError, ValueError):
            status = EntryStatus.ERROR
        spec = data.get("spec")
        return cls(
            id=str(data["id"]),
            image_url=str(data["imageUrl"]),
            spec=spec if isinstance(spec, dict) else None,
            status=status,
            created_at=_coerce_timestamp(data.get("createdAt")),
        )


def _coerce_timestamp(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value):
        return 0
    return int(value)


@dataclass
class FlatElement:
    """A spec element whose children are referenced by key."""

    type: str
    props: Dict[str, Any] = field(default_factory=dict)
    children: List[str] = field(default_factory=list)
    visible: Any = None
    repeat: Any = None
    on: Any = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "props": self.props,
            "children": list(self.children),
        }
        # Absent optional fields stay absent, the renderer checks presence.
        if self.visible is not None:
            data["visible"] = self.visible
        if self.repeat is not None:
            data["repeat"] = self.repeat
        if self.on is not None:
            data["on"] = self.on
        return data


@dataclass
class FlatSpec:
    """Address-indexed form of a spec tree."""

    root: str
    elements: Dict[str, FlatElement] = field(default_factory=dict)
    state: Optional[Dict[str, Any]] = None

    def is_renderable(self) -> bool:
        if self.root not in self.elements:
            return False
        return all(
            child in self.elements
            for element in self.elements.values()
            for child in element.children
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "root": self.root,
            "elements": {key: element.to_dict() for key, element in self.elements.items()},
        }
        if self.state is not None:
            data["state"] = self.state
        return data
