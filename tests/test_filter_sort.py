import unittest
from datetime import datetime, timedelta, timezone

from contribhub.application.filter_sort import (
    filter_and_sort,
    filter_by_difficulty,
    matches,
    truncate_description,
)
from contribhub.domain.models import Difficulty, DifficultyFilter, Issue, SortMode, ViewQuery

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _issue(issue_id: int, comments: int = 0, days: int = 0, **overrides) -> Issue:
    values = {
        "id": issue_id,
        "title": f"Issue {issue_id}",
        "description": "",
        "repo": "octocat/hello-world",
        "difficulty": Difficulty.BEGINNER,
        "comments": comments,
        "url": f"https://github.com/octocat/hello-world/issues/{issue_id}",
        "created_at": T0 + timedelta(days=days),
        "updated_at": T0 + timedelta(days=days),
    }
    values.update(overrides)
    return Issue(**values)


class TestMatches(unittest.TestCase):
    def test_empty_search_and_all_difficulty_match_everything(self) -> None:
        self.assertTrue(matches(_issue(1), ViewQuery()))

    def test_search_is_case_insensitive_over_title_description_and_repo(self) -> None:
        issue = _issue(1, title="Crash on START", description="Stack trace attached", repo="Acme/Rocket")

        self.assertTrue(matches(issue, ViewQuery(search="start")))
        self.assertTrue(matches(issue, ViewQuery(search="STACK")))
        self.assertTrue(matches(issue, ViewQuery(search="acme/rock")))
        self.assertFalse(matches(issue, ViewQuery(search="parser")))

    def test_difficulty_filter_requires_exact_match(self) -> None:
        issue = _issue(1, difficulty=Difficulty.INTERMEDIATE)

        self.assertTrue(matches(issue, ViewQuery(difficulty=DifficultyFilter.INTERMEDIATE)))
        self.assertFalse(matches(issue, ViewQuery(difficulty=DifficultyFilter.BEGINNER)))

    def test_search_and_difficulty_combine(self) -> None:
        issue = _issue(1, title="docs", difficulty=Difficulty.UNKNOWN)

        self.assertFalse(matches(issue, ViewQuery(search="docs", difficulty=DifficultyFilter.BEGINNER)))
        self.assertTrue(matches(issue, ViewQuery(search="docs", difficulty=DifficultyFilter.UNKNOWN)))

    def test_same_arguments_give_same_result(self) -> None:
        issue = _issue(1, title="Flaky test")
        query = ViewQuery(search="flaky")

        self.assertEqual(matches(issue, query), matches(issue, query))


class TestFilterAndSort(unittest.TestCase):
    def test_each_sort_mode_orders_by_its_key(self) -> None:
        issues = [_issue(1, comments=3, days=2), _issue(2, comments=9, days=1), _issue(3, comments=5, days=3)]

        def ids(sort):
            return [issue.id for issue in filter_and_sort(issues, ViewQuery(sort=sort))]

        self.assertEqual(ids(SortMode.COMMENTS_DESC), [2, 3, 1])
        self.assertEqual(ids(SortMode.COMMENTS_ASC), [1, 3, 2])
        self.assertEqual(ids(SortMode.NEWEST), [3, 1, 2])
        self.assertEqual(ids(SortMode.OLDEST), [2, 1, 3])

    def test_equal_keys_keep_catalog_order_in_every_mode(self) -> None:
        issues = [_issue(issue_id, comments=4, days=0) for issue_id in (7, 3, 9, 1)]

        for sort in SortMode:
            with self.subTest(sort=sort):
                ordered = filter_and_sort(issues, ViewQuery(sort=sort))
                self.assertEqual([issue.id for issue in ordered], [7, 3, 9, 1])

    def test_ties_stay_stable_among_distinct_keys(self) -> None:
        issues = [_issue(1, comments=2), _issue(2, comments=5), _issue(3, comments=2), _issue(4, comments=5)]

        ordered = filter_and_sort(issues, ViewQuery(sort=SortMode.COMMENTS_DESC))

        self.assertEqual([issue.id for issue in ordered], [2, 4, 1, 3])

    def test_input_is_not_modified(self) -> None:
        issues = [_issue(1, comments=1), _issue(2, comments=2)]

        filter_and_sort(issues, ViewQuery(sort=SortMode.COMMENTS_DESC))

        self.assertEqual([issue.id for issue in issues], [1, 2])

    def test_two_issue_catalog_sorted_by_comments(self) -> None:
        issues = [
            _issue(1, comments=3, days=0, difficulty=Difficulty.BEGINNER),
            _issue(2, comments=9, days=1, difficulty=Difficulty.INTERMEDIATE),
        ]

        ordered = filter_and_sort(issues, ViewQuery(difficulty=DifficultyFilter.ALL, sort=SortMode.COMMENTS_DESC))

        self.assertEqual([issue.id for issue in ordered], [2, 1])

    def test_filter_by_difficulty(self) -> None:
        issues = [_issue(1), _issue(2, difficulty=Difficulty.UNKNOWN)]

        self.assertEqual([i.id for i in filter_by_difficulty(issues, DifficultyFilter.UNKNOWN)], [2])
        self.assertEqual(len(filter_by_difficulty(issues, DifficultyFilter.ALL)), 2)


class TestTruncateDescription(unittest.TestCase):
    def test_long_description_is_cut_at_twelve_words(self) -> None:
        text = " ".join(f"w{n}" for n in range(15))

        self.assertEqual(truncate_description(text), " ".join(f"w{n}" for n in range(12)) + "...")

    def test_short_description_is_unchanged(self) -> None:
        self.assertEqual(truncate_description("short and sweet"), "short and sweet")
