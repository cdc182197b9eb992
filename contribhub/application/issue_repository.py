import logging
from typing import Optional, Tuple

from contribhub.application.request_tracker import RequestTracker
from contribhub.domain.exceptions import FetchError, PayloadError, SupersededRequestError
from contribhub.domain.models import Issue
from contribhub.infrastructure.acl import HubTranslator
from contribhub.infrastructure.api_client import HubApiClient

logger = logging.getLogger(__name__)

RESOURCE = "issues"


class IssueRepository:
    """
    Fetches and caches the issue catalog.

    The cache is only ever replaced as a whole. A failed fetch leaves the
    previous catalog in place and surfaces the error to the caller.
    """

    def __init__(self, api_client: HubApiClient, tracker: Optional[RequestTracker] = None):
        self.api_client = api_client
        self.tracker = tracker or RequestTracker()
        self._issues: Tuple[Issue, ...] = ()

    @property
    def issues(self) -> Tuple[Issue, ...]:
        return self._issues

    def get(self, issue_id: int) -> Optional[Issue]:
        return next((issue for issue in self._issues if issue.id == issue_id), None)

    async def fetch_all(self) -> Tuple[Issue, ...]:
        """
        Reads the full catalog and replaces the cache with it.

        Raises:
            NetworkError, ServerError, PayloadError: The fetch failed; the cache is untouched.
            SupersededRequestError: A newer fetch started (or the view went away) before this one finished.
        """
        ticket = self.tracker.begin(RESOURCE)
        try:
            payload = await self.api_client.get_issues()
            issues = tuple(HubTranslator.to_issues(payload))
        except (ValueError, TypeError) as e:
            self.tracker.ensure_current(ticket)
            raise PayloadError(f"Issue catalog could not be decoded: {e}") from e
        except FetchError as e:
            if not self.tracker.is_current(ticket):
                raise SupersededRequestError(RESOURCE) from e
            logger.warning(f"Failed to fetch issues: {e}")
            raise

        self.tracker.ensure_current(ticket)
        self._issues = issues
        logger.info(f"Fetched {len(issues)} issues.")
        return issues

    def discard_pending(self) -> None:
        self.tracker.supersede_all()
