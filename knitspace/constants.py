"""Constants and presets for knitspace."""

from typing import Any, Dict, Tuple


STORAGE_KEY = "knitspace.sketch.history.v1"

SETTINGS_ORGANIZATION = "Knitspace"
SETTINGS_APPLICATION = "Knitspace"

DEFAULT_ENDPOINT = "http://localhost:3000/api/chat"
DEFAULT_PROMPT = "Generate a knitting pattern UI for this sketch."

DEFAULT_IDLE_MS = 500
CLEAR_REVEAL_MS = 500
LOADING_VERB_INTERVAL_MS = 2400

PRIMARY_BUTTON = 0
DEFAULT_PRESSURE = 0.5

SNAPSHOT_MIME_TYPE = "image/png"
TRANSPARENT = "transparent"


STROKE_OPTIONS: Dict[str, Any] = {
    "size": 8.0,
    "thinning": 0.6,
    "smoothing": 0.6,
    "streamline": 0.5,
    "simulate_pressure": True,
    "start": {"cap": True, "taper": 2.0},
    "end": {"cap": True, "taper": 4.0},
}


LOADING_VERBS: Tuple[str, ...] = (
    "Purling",
    "Knitting",
    "Weaving in the ends",
    "Untangling the yarn",
    "Winding a skein",
    "Untangling a nest",
    "Raising the sheep",
    "Shearing the sheep",
    "Dyeing the wool",
    "Naming the design",
    "Frogging a failure",
    "Checking gauge",
    "Abandoning your project",
    "Getting distracted by a new project",
    "Abandoning the gauge",
    "Making a swatch",
    "Crafting",
    "Stitching",
    "Increasing the width",
    "Checking the stitch count",
    "Decreasing the width",
    "Ignoring the pattern",
    "Ignoring the gauge",
    "Ignoring my stash",
    "Getting RSI in my wrists",
    "Pairing colors",
    "Contemplating options",
    "Ripping out stitches",
    "Checking needle sizes",
    "Buying more yarn",
    "Trying double-pointed needles",
    "Trying circular needles",
    "Trying intarsia",
    "Figuring out continental stitching",
    "Attempting to cable",
    "Knitting without looking",
    "Forgetting my color change",
    "Getting distracted by yarn colors",
    "Critiquing your design",
    "Questioning your design",
    "Second-guessing my pattern",
)
