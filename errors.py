"""Exception kinds raised by the tree induction and boosting code."""


class InvalidArgumentError(ValueError):
    """Raised for empty record collections, bad weights or bad parameters."""


class MissingTargetError(ValueError):
    """Raised when a record without a target is used where one is required."""


class UnreadyEnsembleError(RuntimeError):
    """Raised when boosting accepted no weak classifier, or before fitting."""


class SplitRangeError(RuntimeError):
    """Raised when a continuous attribute is evaluated without its split ranges."""
