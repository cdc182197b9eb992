import asyncio
import logging
from typing import Optional, Tuple

from contribhub.application.bookmark_sync import BookmarkSynchronizer
from contribhub.application.filter_sort import filter_and_sort, filter_by_difficulty
from contribhub.application.issue_repository import IssueRepository
from contribhub.application.paginator import PAGE_SIZE, clamp_page, paginate, total_pages
from contribhub.application.session_gate import SessionGate
from contribhub.domain.exceptions import (
    FetchError,
    NotAuthenticatedError,
    SupersededRequestError,
    ToggleFailedError,
    ToggleInProgressError,
    UnauthorizedError,
)
from contribhub.domain.models import (
    Authenticated,
    DifficultyFilter,
    Issue,
    Page,
    SortMode,
    ViewQuery,
)

logger = logging.getLogger(__name__)


class _ViewState:
    """
    State record shared by every page: lifecycle, the last error, a transient
    notification for the user, and where to send the browser if anywhere.
    """

    def __init__(self, session_gate: SessionGate):
        self.session_gate = session_gate
        self.active = False
        self.error: Optional[str] = None
        self.notification: Optional[str] = None
        self.redirect_to: Optional[str] = None

    def dismiss_notification(self) -> None:
        self.notification = None

    def _redirect_to_login(self) -> None:
        self.redirect_to = self.session_gate.login_url


class _PagedList:
    """Current page number of an ordered list, reset to 1 whenever the list's membership or order changes."""

    def __init__(self, size: int = PAGE_SIZE):
        self.size = size
        self.page = 1
        self._ordered: Tuple[Issue, ...] = ()

    @property
    def ordered(self) -> Tuple[Issue, ...]:
        return self._ordered

    @property
    def total_pages(self) -> int:
        return total_pages(len(self._ordered), self.size)

    def update(self, ordered: Tuple[Issue, ...]) -> None:
        if [issue.id for issue in ordered] != [issue.id for issue in self._ordered]:
            self.page = 1
        self._ordered = ordered

    def go_to(self, requested: int) -> int:
        self.page = clamp_page(requested, self.total_pages)
        return self.page

    def current(self) -> Page:
        return paginate(self._ordered, self.page, self.size)


class IssueBrowserView(_ViewState):
    """The "find an issue" page: the catalog under a search/filter/sort query, decorated with bookmarks."""

    def __init__(
        self,
        repository: IssueRepository,
        bookmarks: BookmarkSynchronizer,
        session_gate: SessionGate,
    ):
        super().__init__(session_gate)
        self.repository = repository
        self.bookmarks = bookmarks
        self.query = ViewQuery()
        self.loading = False
        self._list = _PagedList()

    @property
    def results(self) -> Tuple[Issue, ...]:
        return self._list.ordered

    @property
    def page_number(self) -> int:
        return self._list.page

    async def enter(self) -> None:
        """Loads the catalog and the user's session/bookmarks concurrently."""
        self.active = True
        self.error = None
        self._recompute()
        await asyncio.gather(self.load_issues(), self.load_user())

    def exit(self) -> None:
        self.active = False
        self.repository.discard_pending()
        self.bookmarks.discard_pending()
        self.session_gate.tracker.supersede_all()

    async def load_issues(self) -> None:
        self.loading = True
        try:
            await self.repository.fetch_all()
        except SupersededRequestError:
            return
        except FetchError as e:
            if self.active:
                self.error = str(e)
        finally:
            self.loading = False
        if self.active:
            self._recompute()

    async def load_user(self) -> None:
        try:
            session = await self.session_gate.current_session()
            if isinstance(session, Authenticated):
                await self.bookmarks.fetch_bookmarked()
        except SupersededRequestError:
            return
        except (FetchError, NotAuthenticatedError) as e:
            # Browsing works without a user; bookmark flags simply stay off.
            logger.info(f"Continuing without bookmarks: {e}")

    def set_search(self, search: str) -> None:
        self._update_query(search=search)

    def set_difficulty(self, difficulty: DifficultyFilter) -> None:
        self._update_query(difficulty=DifficultyFilter(difficulty))

    def set_sort(self, sort: SortMode) -> None:
        self._update_query(sort=SortMode(sort))

    def go_to_page(self, requested: int) -> int:
        return self._list.go_to(requested)

    def current_page(self) -> Page:
        page = self._list.current()
        return page.model_copy(update={"items": tuple(self.bookmarks.decorate(page.items))})

    async def toggle_bookmark(self, issue_id: int) -> Optional[bool]:
        """
        Toggles a bookmark and records any failure on the view for display.

        Returns:
            Optional[bool]: The new membership, or None if the toggle did not happen.
        """
        self.notification = None
        try:
            return await self.bookmarks.toggle(issue_id)
        except NotAuthenticatedError as e:
            self.notification = str(e)
        except ToggleInProgressError as e:
            logger.debug(str(e))
        except UnauthorizedError:
            self.notification = "Your session has expired. Please login again."
        except ToggleFailedError as e:
            self.notification = e.reason
        return None

    def _update_query(self, **changes) -> None:
        self.query = self.query.model_copy(update=changes)
        self._recompute()

    def _recompute(self) -> None:
        self._list.update(filter_and_sort(self.repository.issues, self.query))


class BookmarksView(_ViewState):
    """The saved-issues page: the user's bookmarked issues under a difficulty filter."""

    def __init__(self, bookmarks: BookmarkSynchronizer, session_gate: SessionGate):
        super().__init__(session_gate)
        self.bookmarks = bookmarks
        self.difficulty = DifficultyFilter.ALL
        self.loading = False
        self._list = _PagedList()

    @property
    def results(self) -> Tuple[Issue, ...]:
        return self._list.ordered

    @property
    def page_number(self) -> int:
        return self._list.page

    async def enter(self) -> None:
        self.active = True
        self.error = None
        self.loading = True
        try:
            session = await self.session_gate.current_session()
            if not isinstance(session, Authenticated):
                self._redirect_to_login()
                return
            await self.bookmarks.fetch_bookmarked()
        except SupersededRequestError:
            return
        except (UnauthorizedError, NotAuthenticatedError):
            if self.active:
                self._redirect_to_login()
            return
        except FetchError as e:
            if self.active:
                self.error = str(e)
        finally:
            self.loading = False
        if self.active:
            self._recompute()

    def exit(self) -> None:
        self.active = False
        self.bookmarks.discard_pending()
        self.session_gate.tracker.supersede_all()

    def set_difficulty(self, difficulty: DifficultyFilter) -> None:
        self.difficulty = DifficultyFilter(difficulty)
        self._recompute()

    def go_to_page(self, requested: int) -> int:
        return self._list.go_to(requested)

    def current_page(self) -> Page:
        return self._list.current()

    async def remove(self, issue_id: int) -> bool:
        """Removes a saved issue. Returns True if it is no longer bookmarked."""
        self.notification = None
        if not self.bookmarks.is_bookmarked(issue_id):
            return True
        try:
            await self.bookmarks.toggle(issue_id)
        except ToggleInProgressError as e:
            logger.debug(str(e))
            return False
        except (UnauthorizedError, NotAuthenticatedError):
            self._redirect_to_login()
            return False
        except ToggleFailedError as e:
            self.notification = e.reason
            return False
        finally:
            self._recompute()
        return True

    def _recompute(self) -> None:
        self._list.update(filter_by_difficulty(self.bookmarks.bookmarked_issues, self.difficulty))


class DashboardView(_ViewState):
    """The signed-in user's profile page."""

    def __init__(self, session_gate: SessionGate):
        super().__init__(session_gate)
        self.loading = False
        self.signed_out = False

    @property
    def profile(self) -> Optional[Authenticated]:
        session = self.session_gate.session
        return session if isinstance(session, Authenticated) else None

    async def enter(self) -> None:
        self.active = True
        self.error = None
        self.loading = True
        try:
            session = await self.session_gate.current_session()
        except SupersededRequestError:
            return
        except FetchError as e:
            if self.active:
                self.error = str(e)
            return
        finally:
            self.loading = False
        if self.active and not isinstance(session, Authenticated):
            self._redirect_to_login()

    def exit(self) -> None:
        self.active = False
        self.session_gate.tracker.supersede_all()

    async def logout(self) -> None:
        """Signs out. The local session is gone afterwards even if the request failed."""
        try:
            await self.session_gate.logout()
        except FetchError as e:
            logger.warning(f"Logout request failed, local session cleared anyway: {e}")
            self.error = str(e)
        self.signed_out = True
