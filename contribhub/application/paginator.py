import math
from typing import List, Sequence, Union

from contribhub.domain.models import ELLIPSIS, Page

PAGE_SIZE = 10
# Up to this many pages the summary lists every page.
FULL_SUMMARY_LIMIT = 4


def total_pages(count: int, size: int = PAGE_SIZE) -> int:
    return math.ceil(count / size)


def clamp_page(requested: int, pages: int) -> int:
    """Caller-side clamp of a requested page number into ``[1, pages]``."""
    return max(1, min(pages, requested))


def page_summary(pages: int, current: int) -> List[Union[int, str]]:
    """
    Page numbers for navigation controls.

    With more than four pages: the first and last page, the current page and
    its neighbours, and one ELLIPSIS for each gap in between.
    """
    if pages <= FULL_SUMMARY_LIMIT:
        return list(range(1, pages + 1))

    start = max(2, current - 1)
    end = min(pages - 1, current + 1)

    summary: List[Union[int, str]] = [1]
    if start > 2:
        summary.append(ELLIPSIS)
    summary.extend(range(start, end + 1))
    if end < pages - 1:
        summary.append(ELLIPSIS)
    summary.append(pages)
    return summary


def paginate(items: Sequence, page: int, size: int = PAGE_SIZE) -> Page:
    """
    Slices ``items[(page-1)*size : page*size]``.
    The page number is not clamped here; use ``clamp_page`` first.
    """
    pages = total_pages(len(items), size)
    start = (page - 1) * size
    return Page(
        items=tuple(items[start:start + size]),
        number=page,
        size=size,
        total_items=len(items),
        total_pages=pages,
        summary=tuple(page_summary(pages, page)),
    )
