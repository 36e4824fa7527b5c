"""Unique identifier generation."""

from __future__ import annotations

import uuid
from typing import Protocol


class GUIDGenerator(Protocol):
    def generate(self) -> str: ...


class UUIDGenerator:
    """Random UUID4 generator."""

    def generate(self) -> str:
        return str(uuid.uuid4())
