"""Certificate validation."""

from .validator import CertificateValidator

__all__ = ["CertificateValidator"]
