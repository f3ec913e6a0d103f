from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    NON_FINITE = "non_finite"
    MAGNITUDE = "magnitude"


class ComponentError(ValueError):
    """A value could not be lifted into a fixed-point Component.

    Construction fails as a whole; no partially converted value is ever returned.
    """

    kind: ErrorKind

    def __init__(self, message: str, value: object = None) -> None:
        super().__init__(message)
        self.value = value


class NonFiniteError(ComponentError):
    kind = ErrorKind.NON_FINITE


class MagnitudeError(ComponentError):
    kind = ErrorKind.MAGNITUDE
