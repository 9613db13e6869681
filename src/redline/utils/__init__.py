"""Utility functions used across the project."""

from .normalize import normalize_pair

__all__ = [
    "normalize_pair",
]
