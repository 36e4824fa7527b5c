"""Application-level validation shared by bbl commands."""

from .validators import BBL_NOT_FOUND, CredentialValidator, EnvironmentValidator

__all__ = ["BBL_NOT_FOUND", "CredentialValidator", "EnvironmentValidator"]
