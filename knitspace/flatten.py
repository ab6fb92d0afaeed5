"""Compile a nested spec tree into its flat, key-addressed form."""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional

from .types import FlatElement, FlatSpec

KEY_PREFIX = "node-"


def tree_to_flat_spec(tree: Optional[Mapping[str, Any]]) -> Optional[FlatSpec]:
    """Flatten ``{"root": element, "state": ...}`` into a ``FlatSpec``.

    Keys are assigned in pre-order, so the root is always ``node-0``. Keys
    are only stable for one pass; re-flattening an updated tree must be
    treated as a full replacement. The input is never mutated.
    """
    if not tree or not isinstance(tree, Mapping):
        return None
    root = tree.get("root")
    if not isinstance(root, Mapping):
        return None

    elements: Dict[str, FlatElement] = {}
    counter = 0

    def walk(element: Mapping[str, Any]) -> str:
        nonlocal counter
        key = f"{KEY_PREFIX}{counter}"
        counter += 1

        child_keys: List[str] = []
        children = element.get("children")
        if isinstance(children, list):
            for child in children:
                if isinstance(child, Mapping):
                    child_keys.append(walk(child))

        props = element.get("props")
        elements[key] = FlatElement(
            type=str(element.get("type", "")),
            props=copy.deepcopy(dict(props)) if isinstance(props, Mapping) else {},
            children=child_keys,
            visible=copy.deepcopy(element.get("visible")),
            repeat=copy.deepcopy(element.get("repeat")),
            on=copy.deepcopy(element.get("on")),
        )
        return key

    root_key = walk(root)
    state = tree.get("state")
    return FlatSpec(
        root=root_key,
        elements=elements,
        state=copy.deepcopy(dict(state)) if isinstance(state, Mapping) else None,
    )


def flat_spec_dict(tree: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """``tree_to_flat_spec`` serialized for QML, or None."""
    flat = tree_to_flat_spec(tree)
    return flat.to_dict() if flat is not None else None
