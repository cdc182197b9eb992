import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from contribhub.application.request_tracker import RequestTracker
from contribhub.application.session_gate import SessionGate
from contribhub.domain.exceptions import (
    FetchError,
    PayloadError,
    SupersededRequestError,
    ToggleFailedError,
    ToggleInProgressError,
    UnauthorizedError,
)
from contribhub.domain.models import DecoratedIssue, Issue
from contribhub.infrastructure.acl import HubTranslator
from contribhub.infrastructure.api_client import HubApiClient

logger = logging.getLogger(__name__)

RESOURCE = "bookmarks"


class BookmarkSynchronizer:
    """
    Owns the signed-in user's set of bookmarked issue ids and keeps it in step
    with the backend.

    Toggles are optimistic: the local set changes before the request goes out
    and the exact inverse change is applied if the request fails. At most one
    toggle per issue id may be in flight; toggles for different ids run
    independently of each other.
    """

    def __init__(
        self,
        api_client: HubApiClient,
        session_gate: SessionGate,
        tracker: Optional[RequestTracker] = None,
    ):
        self.api_client = api_client
        self.session_gate = session_gate
        self.tracker = tracker or RequestTracker()
        self._bookmarked: Set[int] = set()
        self._issues: Tuple[Issue, ...] = ()
        # issue id -> membership the in-flight toggle is trying to reach
        self._in_flight: Dict[int, bool] = {}
        # bumped on every reset so rollbacks from before a reset are dropped
        self._generation = 0
        session_gate.on_reset(self.clear)

    @property
    def bookmarked_ids(self) -> FrozenSet[int]:
        return frozenset(self._bookmarked)

    @property
    def bookmarked_issues(self) -> Tuple[Issue, ...]:
        """Issue records from the last fetch that are still bookmarked, in server order."""
        return tuple(issue for issue in self._issues if issue.id in self._bookmarked)

    @property
    def pending(self) -> FrozenSet[int]:
        return frozenset(self._in_flight)

    def is_bookmarked(self, issue_id: int) -> bool:
        return issue_id in self._bookmarked

    def decorate(self, issues: Iterable[Issue]) -> List[DecoratedIssue]:
        return [DecoratedIssue(issue=issue, bookmarked=issue.id in self._bookmarked) for issue in issues]

    def clear(self) -> None:
        self._generation += 1
        self._bookmarked = set()
        self._issues = ()
        self.tracker.supersede_all()

    def discard_pending(self) -> None:
        self.tracker.supersede_all()

    async def fetch_bookmarked(self) -> FrozenSet[int]:
        """
        Replaces the local set with the user's bookmarks from the backend.

        Ids with a toggle still in flight keep their optimistic membership; the
        toggle's own outcome decides them.

        Raises:
            NotAuthenticatedError: Nobody is signed in. No request is made.
            UnauthorizedError: The backend rejected the session, which is downgraded to Anonymous.
            NetworkError, ServerError, PayloadError: The fetch failed; the set is untouched.
            SupersededRequestError: A newer fetch or a reset happened while this one was in flight.
        """
        self.session_gate.require_authenticated()
        ticket = self.tracker.begin(RESOURCE)
        try:
            payload = await self.api_client.get_bookmarks()
            issues = tuple(HubTranslator.to_issues(payload))
        except (ValueError, TypeError) as e:
            self.tracker.ensure_current(ticket)
            raise PayloadError(f"Bookmarks could not be decoded: {e}") from e
        except UnauthorizedError:
            if self.tracker.is_current(ticket):
                self.session_gate.downgrade()
            raise
        except FetchError as e:
            if not self.tracker.is_current(ticket):
                raise SupersededRequestError(RESOURCE) from e
            logger.warning(f"Failed to fetch bookmarks: {e}")
            raise

        self.tracker.ensure_current(ticket)
        bookmarked = {issue.id for issue in issues}
        for issue_id, target in self._in_flight.items():
            if target:
                bookmarked.add(issue_id)
            else:
                bookmarked.discard(issue_id)

        self._issues = issues
        self._bookmarked = bookmarked
        logger.info(f"Fetched {len(issues)} bookmarks.")
        return self.bookmarked_ids

    async def toggle(self, issue_id: int) -> bool:
        """
        Adds the bookmark if absent, removes it if present.

        Returns:
            bool: The new membership, True when the issue is now bookmarked.

        Raises:
            NotAuthenticatedError: Nobody is signed in. No request is made.
            ToggleInProgressError: A toggle for this id has not finished yet.
            UnauthorizedError: The backend rejected the session; the change is rolled back.
            ToggleFailedError: The request failed; the change is rolled back.
        """
        self.session_gate.require_authenticated()
        if issue_id in self._in_flight:
            raise ToggleInProgressError(issue_id)

        was_bookmarked = issue_id in self._bookmarked
        target = not was_bookmarked
        generation = self._generation

        self._apply(issue_id, target)
        self._in_flight[issue_id] = target
        try:
            if target:
                await self.api_client.add_bookmark(issue_id)
            else:
                await self.api_client.remove_bookmark(issue_id)
        except UnauthorizedError:
            self._rollback(issue_id, was_bookmarked, generation)
            self.session_gate.downgrade()
            raise
        except FetchError as e:
            self._rollback(issue_id, was_bookmarked, generation)
            action = "save" if target else "remove"
            logger.warning(f"Failed to {action} bookmark for issue {issue_id}: {e}")
            raise ToggleFailedError(issue_id, reason=f"Failed to {action} bookmark") from e
        except BaseException:
            # Cancelled, or failed outside the fetch taxonomy.
            self._rollback(issue_id, was_bookmarked, generation)
            raise
        finally:
            self._in_flight.pop(issue_id, None)

        logger.debug(f"Issue {issue_id} bookmarked={target}.")
        return target

    def _apply(self, issue_id: int, bookmarked: bool) -> None:
        if bookmarked:
            self._bookmarked.add(issue_id)
        else:
            self._bookmarked.discard(issue_id)

    def _rollback(self, issue_id: int, was_bookmarked: bool, generation: int) -> None:
        if generation != self._generation:
            # The set was reset mid-flight; there is nothing of ours left to undo.
            return
        self._apply(issue_id, was_bookmarked)
