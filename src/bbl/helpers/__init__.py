"""Small shared helpers."""

from .guid import GUIDGenerator, UUIDGenerator

__all__ = ["GUIDGenerator", "UUIDGenerator"]
