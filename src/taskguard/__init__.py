"""TaskGuard — dependency validation and git-aware task status inference."""

from taskguard.config import VERSION as __version__

__all__ = ["__version__"]
