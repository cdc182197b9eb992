"""
Pure derivations from the issue catalog to an ordered list.
No I/O and no retained state: the same inputs always give the same output.
"""
from typing import Callable, Dict, Iterable, Tuple

from contribhub.domain.models import DifficultyFilter, Issue, SortMode, ViewQuery

MAX_DESCRIPTION_WORDS = 12

# sort mode -> (key, descending); sorted() is stable in both directions
_ORDERINGS: Dict[SortMode, Tuple[Callable[[Issue], object], bool]] = {
    SortMode.COMMENTS_DESC: (lambda issue: issue.comments, True),
    SortMode.COMMENTS_ASC: (lambda issue: issue.comments, False),
    SortMode.NEWEST: (lambda issue: issue.created_at, True),
    SortMode.OLDEST: (lambda issue: issue.created_at, False),
}


def matches_difficulty(issue: Issue, difficulty: DifficultyFilter) -> bool:
    return difficulty == DifficultyFilter.ALL or issue.difficulty.value == difficulty.value


def matches(issue: Issue, query: ViewQuery) -> bool:
    """True when the issue passes both the search text and the difficulty filter."""
    needle = query.search.lower()
    matches_search = (
        not needle
        or needle in issue.title.lower()
        or needle in issue.description.lower()
        or needle in issue.repo.lower()
    )
    return matches_search and matches_difficulty(issue, query.difficulty)


def sort_issues(issues: Iterable[Issue], sort: SortMode) -> Tuple[Issue, ...]:
    key, descending = _ORDERINGS[sort]
    return tuple(sorted(issues, key=key, reverse=descending))


def filter_and_sort(issues: Iterable[Issue], query: ViewQuery) -> Tuple[Issue, ...]:
    """
    Applies the query's predicate and ordering to the catalog.
    Issues with equal sort keys keep their relative catalog order.
    """
    return sort_issues((issue for issue in issues if matches(issue, query)), query.sort)


def filter_by_difficulty(issues: Iterable[Issue], difficulty: DifficultyFilter) -> Tuple[Issue, ...]:
    return tuple(issue for issue in issues if matches_difficulty(issue, difficulty))


def truncate_description(description: str, max_words: int = MAX_DESCRIPTION_WORDS) -> str:
    """Card excerpt: the first ``max_words`` space-separated words, with ``...`` when cut."""
    words = description.split(" ")
    if len(words) > max_words:
        return " ".join(words[:max_words]) + "..."
    return description
