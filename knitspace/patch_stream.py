"""Incremental decoder for line-delimited JSON patch streams.

The backend streams one RFC 6902 style operation per line. Network chunks
do not respect line boundaries, so the decoder keeps the unterminated tail
of each chunk and only parses lines once their newline has arrived.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from .errors import DecodeSkew

logger = logging.getLogger(__name__)

Container = Union[Dict[str, Any], List[Any]]

SUPPORTED_OPS = ("add", "replace", "remove")


@dataclass
class StreamUpdate:
    """Outcome of one ``push``: the new document when anything applied."""

    result: Optional[Dict[str, Any]] = None
    new_patches: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.new_patches)


def parse_pointer(pointer: str) -> List[str]:
    """Split an RFC 6901 JSON pointer into unescaped segments."""
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise DecodeSkew(f"Invalid JSON pointer: {pointer!r}")
    return [part.replace("~1", "/").replace("~0", "~") for part in pointer[1:].split("/")]


def parse_patch_line(line: str) -> Dict[str, Any]:
    """Parse one protocol line into a patch operation."""
    try:
        patch = json.loads(line)
    except (RecursionError, ValueError) as exc:
        raise DecodeSkew(f"Unparseable line: {exc}") from exc
    if not isinstance(patch, dict):
        raise DecodeSkew("Line is not a JSON object")
    if not isinstance(patch.get("op"), str) or not isinstance(patch.get("path"), str):
        raise DecodeSkew("Patch needs string 'op' and 'path'")
    parse_pointer(patch["path"])
    return patch


def _new_container(next_segment: str) -> Container:
    if next_segment == "-" or next_segment.isdigit():
        return []
    return {}


def _list_index(items: List[Any], segment: str, allow_end: bool) -> Optional[int]:
    if segment == "-":
        return len(items) if allow_end else None
    if not segment.isdigit():
        return None
    return int(segment)


def _resolve_parent(document: Dict[str, Any], segments: List[str], create: bool) -> Optional[Container]:
    node: Any = document
    for position, segment in enumerate(segments[:-1]):
        next_segment = segments[position + 1]
        if isinstance(node, dict):
            child = node.get(segment)
            if not isinstance(child, (dict, list)):
                if not create or child is not None:
                    return None
                child = _new_container(next_segment)
                node[segment] = child
        elif isinstance(node, list):
            index = _list_index(node, segment, allow_end=create)
            if index is None:
                return None
            if index < len(node):
                child = node[index]
                if not isinstance(child, (dict, list)):
                    if not create or child is not None:
                        return None
                    child = _new_container(next_segment)
                    node[index] = child
            elif create:
                child = _new_container(next_segment)
                node.append(child)
            else:
                return None
        else:
            return None
        node = child
    return node if isinstance(node, (dict, list)) else None


def _apply_to_document(document: Dict[str, Any], op: str, value: Any) -> bool:
    if op == "remove":
        document.clear()
        return True
    if not isinstance(value, dict):
        return False
    document.clear()
    document.update(value)
    return True


def apply_patch(document: Dict[str, Any], patch: Dict[str, Any]) -> bool:
    """Apply one operation to ``document`` in place.

    Returns True when the document changed. Missing paths never raise:
    ``add`` creates intermediate containers, ``replace`` and ``remove``
    leave the document alone.
    """
    op = patch.get("op")
    if op not in SUPPORTED_OPS:
        logger.debug("Skipping unsupported patch op %r", op)
        return False
    segments = parse_pointer(patch.get("path", ""))
    value = patch.get("value")

    if not segments:
        return _apply_to_document(document, op, value)

    parent = _resolve_parent(document, segments, create=(op == "add"))
    if parent is None:
        return False
    last = segments[-1]

    if isinstance(parent, dict):
        if op == "add":
            parent[last] = value
            return True
        if last not in parent:
            return False
        if op == "replace":
            parent[last] = value
        else:
            del parent[last]
        return True

    index = _list_index(parent, last, allow_end=(op == "add"))
    if index is None:
        return False
    if op == "add":
        if index >= len(parent):
            parent.append(value)
        else:
            parent.insert(index, value)
        return True
    if index >= len(parent):
        return False
    if op == "replace":
        parent[index] = value
    else:
        del parent[index]
    return True


class SpecStreamDecoder:
    """Rebuild a spec document from a stream of text chunks."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._document: Dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._buffer = ""
        self.skipped_lines = 0

    @property
    def pending_text(self) -> str:
        return self._buffer

    def push(self, chunk: str) -> StreamUpdate:
        """Feed the next chunk; complete lines are applied immediately."""
        lines = (self._buffer + chunk).split("\n")
        self._buffer = lines.pop()
        return self._apply_lines(lines)

    def finish(self) -> StreamUpdate:
        """Apply a trailing line that never received its newline."""
        tail, self._buffer = self._buffer, ""
        return self._apply_lines([tail])

    def get_result(self) -> Dict[str, Any]:
        return self._document

    def _apply_lines(self, lines: Iterable[str]) -> StreamUpdate:
        applied: List[Dict[str, Any]] = []
        for raw in lines:
            line = raw.strip()
            if not line:
                continue
            try:
                patch = parse_patch_line(line)
            except DecodeSkew as exc:
                self.skipped_lines += 1
                logger.debug("Skipping stream line %.80r: %s", line, exc)
                continue
            if apply_patch(self._document, patch):
                applied.append(patch)

        if not applied:
            return StreamUpdate()
        return StreamUpdate(result=copy.deepcopy(self._document), new_patches=applied)
