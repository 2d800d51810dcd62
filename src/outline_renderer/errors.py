"""Exception taxonomy for the outline renderer.

All failures happen while acquiring or validating resources, before the
per-pixel pass starts. Nothing inside the pass itself can raise.

    OutlineError
    ├── MaskLoadFailure     mask file missing or undecodable
    └── DimensionMismatch   mask/canvas shapes incompatible (also a ValueError)
"""


class OutlineError(Exception):
    """Base class for outline renderer errors."""

    pass


class MaskLoadFailure(OutlineError):
    """Raised when a mask image cannot be read or decoded.

    The underlying exception (``OSError``, ``PIL.UnidentifiedImageError``) is
    chained as ``__cause__``.
    """

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load mask {path}: {reason}")


class DimensionMismatch(OutlineError, ValueError):
    """Raised when mask and canvas shapes cannot be used together."""

    def __init__(self, message: str, mask_shape=None, canvas_shape=None):
        self.mask_shape = mask_shape
        self.canvas_shape = canvas_shape
        super().__init__(message)
