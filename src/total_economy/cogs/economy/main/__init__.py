"""Economy plugin entry module."""

from .main import TotalEconomyPlugin

__all__ = ["TotalEconomyPlugin"]
