class SplitError(ValueError):
    """Base class for rejected split input."""


class InvalidSplitError(SplitError):
    """Split input that cannot be resolved or has the wrong shape."""


class SplitIntegrityError(SplitError):
    """Split amounts that no longer add up to the expense total."""
