"""Enums for model fields."""

from enum import Enum


class Priority(str, Enum):
    """Card priority levels."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
