"""Helpers over protean's query API."""

BATCH_SIZE = 100


def all_items(query, batch_size: int = BATCH_SIZE) -> list:
    """Every entity matched by ``query``, fetched page by page.

    Repository queries stop at a default limit; this walks past it.
    """
    items, offset = [], 0
    while True:
        results = query.offset(offset).limit(batch_size).all()
        items.extend(results.items)
        offset += batch_size
        if offset >= results.total:
            return items
