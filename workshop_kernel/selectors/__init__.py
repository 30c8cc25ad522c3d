"""Selectors for the workshop kernel (read side)."""

from workshop_kernel.selectors.base import BaseSelector

__all__ = ["BaseSelector"]
