"""Result cache abstraction and in-process implementation."""

from movie_prices.cache.result_cache import MemoryResultCache, ResultCache

__all__ = ["ResultCache", "MemoryResultCache"]
