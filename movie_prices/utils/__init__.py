"""Shared utilities: logging setup."""

from movie_prices.utils.logger import setup_logger

__all__ = ["setup_logger"]
