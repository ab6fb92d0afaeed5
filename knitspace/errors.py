"""Error taxonomy for the sketch pipeline.

None of these escape to the hosting UI: each is raised at the point where
the failure is detected and converted into an entry status or a silent
no-op by the component that owns the boundary.
"""


class KnitspaceError(Exception):
    """Base class for knitspace failures."""


class CaptureError(KnitspaceError):
    """Surface geometry is unavailable, so no snapshot can be taken."""


class TransportError(KnitspaceError):
    """The generation request failed for a reason other than cancellation."""


class DecodeSkew(KnitspaceError):
    """A single protocol line could not be used as a patch operation."""


class PersistenceError(KnitspaceError):
    """Reading from or writing to the durable store failed."""
