"""Read every row behind a Protean queryset.

Aggregate querysets carry a default limit, so a plain ``.all().items``
silently stops at the first page. ``fetch_all`` walks the pages with
offset and limit until the reported total is reached.
"""

PAGE_SIZE = 100


def fetch_all(queryset, page_size: int = PAGE_SIZE) -> list:
    items = []
    offset = 0
    while True:
        page = queryset.offset(offset).limit(page_size).all()
        items.extend(page.items)
        offset += page_size
        if not page.items or offset >= page.total:
            return items
