"""Runtime settings for knitspace, read from ``KNITSPACE_*`` variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import DEFAULT_ENDPOINT, DEFAULT_IDLE_MS, DEFAULT_PROMPT, STORAGE_KEY, TRANSPARENT

logger = logging.getLogger(__name__)

ENV_PREFIX = "KNITSPACE_"


@dataclass(frozen=True)
class KnitspaceSettings:
    endpoint: str = DEFAULT_ENDPOINT
    prompt: str = DEFAULT_PROMPT
    idle_ms: int = DEFAULT_IDLE_MS
    storage_key: str = STORAGE_KEY
    # 0 disables the transfer timeout; a stalled stream then only ends by cancellation.
    stream_timeout_ms: int = 0
    device_pixel_ratio: float = 1.0
    background: str = TRANSPARENT


def _coerce_int(name: str, value: str, default: int, minimum: int = 0) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        logger.warning("Ignoring %s%s=%r: not an integer", ENV_PREFIX, name, value)
        return default
    if parsed < minimum:
        logger.warning("Ignoring %s%s=%r: must be >= %d", ENV_PREFIX, name, value, minimum)
        return default
    return parsed


def _coerce_float(name: str, value: str, default: float) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        logger.warning("Ignoring %s%s=%r: not a number", ENV_PREFIX, name, value)
        return default
    if parsed <= 0:
        logger.warning("Ignoring %s%s=%r: must be positive", ENV_PREFIX, name, value)
        return default
    return parsed


def load_settings(env: Optional[Mapping[str, str]] = None) -> KnitspaceSettings:
    """Build settings from the environment, falling back to defaults."""
    if env is None:
        env = os.environ
    defaults = KnitspaceSettings()

    def _get(name: str) -> Optional[str]:
        raw = env.get(ENV_PREFIX + name)
        if raw is None or not raw.strip():
            return None
        return raw

    endpoint = _get("ENDPOINT")
    prompt = _get("PROMPT")
    idle_ms = _get("IDLE_MS")
    storage_key = _get("STORAGE_KEY")
    timeout = _get("STREAM_TIMEOUT_MS")
    dpr = _get("DEVICE_PIXEL_RATIO")
    background = _get("BACKGROUND")

    return KnitspaceSettings(
        endpoint=endpoint.strip() if endpoint else defaults.endpoint,
        prompt=prompt if prompt else defaults.prompt,
        idle_ms=_coerce_int("IDLE_MS", idle_ms, defaults.idle_ms) if idle_ms else defaults.idle_ms,
        storage_key=storage_key.strip() if storage_key else defaults.storage_key,
        stream_timeout_ms=(
            _coerce_int("STREAM_TIMEOUT_MS", timeout, defaults.stream_timeout_ms)
            if timeout
            else defaults.stream_timeout_ms
        ),
        device_pixel_ratio=(
            _coerce_float("DEVICE_PIXEL_RATIO", dpr, defaults.device_pixel_ratio)
            if dpr
            else defaults.device_pixel_ratio
        ),
        background=background.strip() if background else defaults.background,
    )
