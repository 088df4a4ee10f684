"""
imgcache - offline-capable image cache with source-of-truth resolution.
"""

__version__ = "0.1.0"
