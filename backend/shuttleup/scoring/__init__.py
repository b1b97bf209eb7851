"""Scoring engines."""

from . import badminton

__all__ = ["badminton"]
