"""
Remote retrieval for the image cache.

- ImageFetcher: Stream remote images to local files over HTTP
"""

from imgcache.retrieval.fetch import ImageFetcher

__all__ = ["ImageFetcher"]
