import asyncio
import unittest

from contribhub.application.issue_repository import IssueRepository
from contribhub.domain.exceptions import NetworkError, PayloadError, ServerError, SupersededRequestError


def _raw_issue(issue_id: int) -> dict:
    return {
        "id": issue_id,
        "title": f"Issue {issue_id}",
        "description": "",
        "repo": "octocat/hello-world",
        "difficulty": "beginner",
        "comments": issue_id,
        "url": f"https://github.com/octocat/hello-world/issues/{issue_id}",
        "createdAt": "2024-01-02T03:04:05Z",
        "updatedAt": "2024-01-02T03:04:05Z",
    }


class _FakeApiClient:
    def __init__(self, responses) -> None:
        # each entry is a payload dict, an exception, or an (Event, payload) pair
        self.responses = list(responses)
        self.calls = 0

    async def get_issues(self):
        response = self.responses[self.calls]
        self.calls += 1
        if isinstance(response, tuple):
            release, response = response
            await release.wait()
        if isinstance(response, Exception):
            raise response
        return response


class TestIssueRepository(unittest.IsolatedAsyncioTestCase):
    async def test_fetch_all_replaces_cache(self) -> None:
        client = _FakeApiClient([
            {"issues": [_raw_issue(1), _raw_issue(2)]},
            {"issues": [_raw_issue(3)]},
        ])
        repository = IssueRepository(client)

        await repository.fetch_all()
        issues = await repository.fetch_all()

        self.assertEqual([issue.id for issue in issues], [3])
        self.assertEqual(repository.issues, issues)
        self.assertIsNone(repository.get(1))
        self.assertEqual(repository.get(3).title, "Issue 3")

    async def test_failure_leaves_previous_cache(self) -> None:
        client = _FakeApiClient([
            {"issues": [_raw_issue(1)]},
            ServerError(502),
            NetworkError(),
        ])
        repository = IssueRepository(client)
        await repository.fetch_all()

        with self.assertRaises(ServerError) as ctx:
            await repository.fetch_all()
        self.assertEqual(ctx.exception.status, 502)
        with self.assertRaises(NetworkError):
            await repository.fetch_all()

        self.assertEqual([issue.id for issue in repository.issues], [1])

    async def test_undecodable_catalog_is_payload_error(self) -> None:
        broken = _raw_issue(2)
        del broken["updatedAt"]
        client = _FakeApiClient([{"issues": [_raw_issue(1)]}, {"issues": [_raw_issue(3), broken]}])
        repository = IssueRepository(client)
        await repository.fetch_all()

        with self.assertRaises(PayloadError):
            await repository.fetch_all()

        self.assertEqual([issue.id for issue in repository.issues], [1])

    async def test_non_object_row_is_payload_error(self) -> None:
        client = _FakeApiClient([{"issues": [_raw_issue(1)]}, {"issues": [1]}])
        repository = IssueRepository(client)
        await repository.fetch_all()

        with self.assertRaises(PayloadError):
            await repository.fetch_all()

        self.assertEqual([issue.id for issue in repository.issues], [1])

    async def test_latest_request_wins(self) -> None:
        slow = asyncio.Event()
        client = _FakeApiClient([
            (slow, {"issues": [_raw_issue(1)]}),
            {"issues": [_raw_issue(2)]},
        ])
        repository = IssueRepository(client)

        first = asyncio.ensure_future(repository.fetch_all())
        await asyncio.sleep(0)
        await repository.fetch_all()
        slow.set()

        with self.assertRaises(SupersededRequestError):
            await first
        self.assertEqual([issue.id for issue in repository.issues], [2])

    async def test_discard_pending_drops_in_flight_response(self) -> None:
        slow = asyncio.Event()
        client = _FakeApiClient([(slow, {"issues": [_raw_issue(1)]})])
        repository = IssueRepository(client)

        pending = asyncio.ensure_future(repository.fetch_all())
        await asyncio.sleep(0)
        repository.discard_pending()
        slow.set()

        with self.assertRaises(SupersededRequestError):
            await pending
        self.assertEqual(repository.issues, ())
