import logging
from typing import Callable, List, Optional

from contribhub.application.request_tracker import RequestTracker
from contribhub.domain.exceptions import (
    FetchError,
    NotAuthenticatedError,
    PayloadError,
    SupersededRequestError,
)
from contribhub.domain.models import Anonymous, Authenticated, Session
from contribhub.infrastructure.acl import HubTranslator
from contribhub.infrastructure.api_client import HubApiClient

logger = logging.getLogger(__name__)

RESOURCE = "session"


class SessionGate:
    """
    Tracks who (if anyone) is signed in and guards every operation that needs a user.

    Components holding user-scoped state register a reset callback; it runs
    whenever the session leaves Authenticated or switches to a different user.
    """

    def __init__(self, api_client: HubApiClient, tracker: Optional[RequestTracker] = None):
        self.api_client = api_client
        self.tracker = tracker or RequestTracker()
        self._session: Session = Anonymous()
        self._reset_callbacks: List[Callable[[], None]] = []

    @property
    def session(self) -> Session:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def login_url(self) -> str:
        return self.api_client.login_url

    def on_reset(self, callback: Callable[[], None]) -> None:
        self._reset_callbacks.append(callback)

    def require_authenticated(self) -> Authenticated:
        if not isinstance(self._session, Authenticated):
            raise NotAuthenticatedError()
        return self._session

    async def current_session(self) -> Session:
        """
        Reads the authentication state from the backend.

        Any failure downgrades the local session to Anonymous before the error
        is raised to the caller.
        """
        ticket = self.tracker.begin(RESOURCE)
        try:
            payload = await self.api_client.get_current_user()
            session = HubTranslator.to_session(payload)
        except (ValueError, TypeError) as e:
            self.tracker.ensure_current(ticket)
            self.downgrade()
            raise PayloadError(f"Current user could not be decoded: {e}") from e
        except FetchError as e:
            if not self.tracker.is_current(ticket):
                raise SupersededRequestError(RESOURCE) from e
            logger.warning(f"Failed to fetch current user: {e}")
            self.downgrade()
            raise

        self.tracker.ensure_current(ticket)
        self._set_session(session)
        return session

    async def logout(self) -> None:
        """
        Ends the server-side session. Local state is reset whether or not the
        request succeeds; a failed request is still reported.
        """
        # A session read still in flight must not resurrect the old user.
        self.tracker.supersede_all()
        try:
            await self.api_client.logout()
        finally:
            self._set_session(Anonymous(), force_reset=True)
        logger.info("Logged out.")

    def downgrade(self) -> None:
        self._set_session(Anonymous())

    def _set_session(self, session: Session, force_reset: bool = False) -> None:
        previous = self._session
        self._session = session

        user_changed = (
            isinstance(previous, Authenticated)
            and (not isinstance(session, Authenticated) or session.id != previous.id)
        )
        if user_changed or force_reset:
            if isinstance(previous, Authenticated):
                logger.info(f"Session for '{previous.login}' ended; resetting user-scoped state.")
            for callback in self._reset_callbacks:
                callback()
        elif isinstance(session, Authenticated) and not isinstance(previous, Authenticated):
            logger.info(f"Signed in as '{session.login}'.")
