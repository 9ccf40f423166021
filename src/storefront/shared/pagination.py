"""Page-size clamping shared by every listing query."""

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100
MAX_THREAD_SIZE = 200


def clamp_take(take, default: int = DEFAULT_PAGE_SIZE, maximum: int = MAX_PAGE_SIZE) -> int:
    """Clamp a requested page size into ``[1, maximum]``."""
    if take is None:
        return default
    try:
        take = int(take)
    except (TypeError, ValueError):
        return default
    return max(1, min(take, maximum))


def clamp_skip(skip) -> int:
    try:
        return max(0, int(skip or 0))
    except (TypeError, ValueError):
        return 0
