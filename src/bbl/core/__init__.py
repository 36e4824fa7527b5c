"""Core bbl functionality: errors, environment state and the state store."""

from .errors import (
    BBLNotFoundError,
    BblError,
    CertificateError,
    CertificateNotFoundError,
    ErrorList,
    StateError,
    ValidationError,
)
from .state import AWS, BOSH, LB, KeyPair, Stack, State, StateStore

__all__ = [
    # Errors
    "BblError",
    "BBLNotFoundError",
    "CertificateError",
    "CertificateNotFoundError",
    "ErrorList",
    "StateError",
    "ValidationError",
    # State
    "AWS",
    "BOSH",
    "KeyPair",
    "LB",
    "Stack",
    "State",
    "StateStore",
]
