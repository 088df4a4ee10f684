"""
Persistent cache store for remote images.

- ImageStore (base.py): Interface the resolution policy depends on
- ImageCacheStore (store.py): Filesystem-backed store with atomic writes
"""

from imgcache.cache.base import ImageSource, ImageStore
from imgcache.cache.store import ImageCacheStore, decode_inline

__all__ = ["ImageCacheStore", "ImageSource", "ImageStore", "decode_inline"]
