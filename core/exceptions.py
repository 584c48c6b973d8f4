class NotFoundError(ValueError):
    """Raised when a place, or a provider lookup, has nothing to return."""


class VibeRefreshError(Exception):
    """Raised when a vibe refresh fails.

    Refreshes never fall back to placeholder content, so the caller keeps
    whatever AI text the place already had.
    """
