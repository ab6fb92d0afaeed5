"""Component catalog for generated knitting pattern UIs.

The catalog lists the component types the backend may place in a spec,
their prop schemas and a short description. The sketch client never sends
the system prompt itself: ``build_system_prompt`` is for the backend host
that talks to the model, and ``validate_props`` and
``normalize_piece_card_props`` are for the renderer host that draws the
flattened spec.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

HEX_COLOR_PATTERN = r"^#([0-9a-fA-F]{6})$"
FALLBACK_YARN_COLOR = "#E5E7EB"

DEFAULT_SYSTEM_PROMPT = "You are a UI generator that outputs JSON."
DEFAULT_RULES: Tuple[str, ...] = (
    "Use a PatternCarousel as the root element.",
    "Add one PieceCard child per piece to knit (oftentimes only 1).",
    "Name each piece with a friendly adjective, e.g. Lucky Star or Oscillating Owl.",
)

_HEX_COLOR = re.compile(HEX_COLOR_PATTERN)


class PatternCarouselProps(BaseModel):
    model_config = ConfigDict(extra="allow")


class PieceCardProps(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(description="Friendly adjective + name, e.g. Shining Star.")
    quantity: Optional[int] = Field(default=None, gt=0)
    yarn: str = Field(description="Suggested yarn type in sentence case.")
    yarn_color: str = Field(
        alias="yarnColor",
        pattern=HEX_COLOR_PATTERN,
        description="Hex color for yarn.",
    )
    instructions: List[str] = Field(min_length=1)


@dataclass(frozen=True)
class ComponentDef:
    name: str
    props: Type[BaseModel]
    description: str
    slots: Tuple[str, ...] = ("default",)


CATALOG: Dict[str, ComponentDef] = {
    "PatternCarousel": ComponentDef(
        name="PatternCarousel",
        props=PatternCarouselProps,
        description="Vertical carousel container for knitting piece cards.",
    ),
    "PieceCard": ComponentDef(
        name="PieceCard",
        props=PieceCardProps,
        description="Single knitting piece with steps and yarn guidance.",
    ),
}


def _schema_type(schema: Mapping[str, Any]) -> str:
    if "anyOf" in schema:
        options = [option for option in schema["anyOf"] if option.get("type") != "null"]
        return " | ".join(_schema_type(option) for option in options) or "null"
    kind = schema.get("type")
    if kind == "array":
        return f"{_schema_type(schema.get('items', {}))}[]"
    if kind == "integer":
        return "number"
    return kind or "unknown"


def describe_props(model: Type[BaseModel]) -> str:
    """Compact one-line summary of a props model, as shown to the model."""
    schema = model.model_json_schema(by_alias=True)
    properties = schema.get("properties", {})
    if not properties:
        return "{}"
    required = set(schema.get("required", []))
    parts = []
    for name, prop in properties.items():
        optional = "" if name in required else "?"
        parts.append(f"{name}{optional}: {_schema_type(prop)}")
    return "{ " + ", ".join(parts) + " }"


def build_system_prompt(
    system: Optional[str] = None,
    rules: Iterable[str] = DEFAULT_RULES,
    catalog: Optional[Mapping[str, ComponentDef]] = None,
) -> str:
    """System prompt describing the JSONL patch protocol and the catalog."""
    catalog = CATALOG if catalog is None else catalog
    components = []
    for name, definition in catalog.items():
        description = f" {definition.description}" if definition.description else ""
        components.append(f"- {name}: props {describe_props(definition.props)}.{description}")

    lines = [
        system or DEFAULT_SYSTEM_PROMPT,
        "",
        "OUTPUT FORMAT (JSONL, RFC 6902 JSON Patch):",
        "Output JSONL (one JSON object per line) using RFC 6902 JSON Patch operations to build a UI tree.",
        "The spec shape is:",
        "{ root: { type, props, children: [] }, state: { ... } }",
        "Use JSON patch paths like /root, /root/children/0, /root/children/1/children/0, /state.",
        "Do NOT wrap output in markdown or code fences.",
        "",
        "AVAILABLE COMPONENTS:",
        *components,
        "",
        "RULES:",
        *(f"- {rule}" for rule in rules),
    ]
    return "\n".join(lines)


def validate_props(component_type: str, props: Mapping[str, Any]) -> Optional[BaseModel]:
    """Validate ``props`` against the catalog; None for unknown or invalid."""
    definition = CATALOG.get(component_type)
    if definition is None:
        return None
    try:
        return definition.props.model_validate(dict(props))
    except ValidationError as exc:
        logger.debug("Invalid %s props: %s", component_type, exc)
        return None


def _instruction_text(step: Any) -> str:
    if isinstance(step, str):
        return step
    if isinstance(step, dict):
        text = step.get("text")
        return text if isinstance(text, str) else json.dumps(step)
    return str(step)


def normalize_piece_card_props(props: Mapping[str, Any]) -> Dict[str, Any]:
    """Display-ready ``PieceCard`` props.

    Streamed props are often partial, so this never fails: quantity
    defaults to 1, a yarn colour that is not ``#RRGGBB`` falls back to a
    neutral grey and instructions are always strings.
    """
    quantity = props.get("quantity")
    if quantity is None:
        quantity = 1
    yarn_color = props.get("yarnColor")
    if not isinstance(yarn_color, str) or not _HEX_COLOR.match(yarn_color):
        yarn_color = FALLBACK_YARN_COLOR
    instructions = props.get("instructions")
    if not isinstance(instructions, list):
        instructions = []

    return {
        "name": str(props.get("name") or ""),
        "quantity": quantity,
        "showQuantity": quantity != 1,
        "yarn": str(props.get("yarn") or ""),
        "yarnColor": yarn_color,
        "instructions": [_instruction_text(step) for step in instructions],
    }
