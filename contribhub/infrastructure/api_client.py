import aiohttp
import asyncio
import logging
from typing import Any, Dict, Optional

from contribhub.domain.exceptions import (
    NetworkError,
    PayloadError,
    ServerError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=60, connect=10)
SESSION_COOKIE_NAME = "connect.sid"


class HubApiClient:
    """
    Client for the ContributionHub backend HTTP API.
    Credentials travel as a session cookie held by the aiohttp cookie jar; the
    client never stores a token of its own. Failures are mapped onto the
    engine's error taxonomy and never retried.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[aiohttp.ClientSession] = None,
        session_cookie: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Accept": "application/json",
            "User-Agent": "contribhub-engine",
        }
        self._session = session
        self._owns_session = session is None
        self._session_cookie = session_cookie

    async def __aenter__(self) -> "HubApiClient":
        if self._session is None:
            cookies = {SESSION_COOKIE_NAME: self._session_cookie} if self._session_cookie else None
            self._session = aiohttp.ClientSession(
                headers=self.headers,
                cookies=cookies,
                timeout=REQUEST_TIMEOUT,
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    @property
    def login_url(self) -> str:
        """Where the browser is sent to begin the GitHub OAuth handshake."""
        return f"{self.base_url}/auth/github"

    async def get_issues(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/issues", auth_required=False)

    async def get_bookmarks(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/bookmarks")

    async def add_bookmark(self, issue_id: int) -> None:
        await self._request("POST", "/api/bookmarks", json={"issueId": issue_id}, expect_body=False)

    async def remove_bookmark(self, issue_id: int) -> None:
        await self._request("DELETE", f"/api/bookmarks/{issue_id}", expect_body=False)

    async def get_current_user(self) -> Dict[str, Any]:
        """
        Fetches the current-user envelope. This endpoint is not auth-gated, so a
        401 here means "nobody is signed in" rather than an error.
        """
        try:
            return await self._request("GET", "/api/auth/user", auth_required=False)
        except ServerError as e:
            if e.status == 401:
                return {"user": None}
            raise

    async def logout(self) -> None:
        await self._request("DELETE", "/api/logout", expect_body=False)

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        auth_required: bool = True,
        expect_body: bool = True,
    ) -> Dict[str, Any]:
        """
        Performs a single request against the backend.

        Raises:
            NetworkError: The transport failed before a response arrived.
            UnauthorizedError: 401 from an auth-gated endpoint.
            ServerError: Any other non-2xx status.
            PayloadError: A 2xx body that is not a JSON object.
        """
        if self._session is None:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        url = f"{self.base_url}{path}"
        try:
            async with self._session.request(method, url, json=json, headers=self.headers) as response:
                if response.status == 401 and auth_required:
                    logger.warning(f"{method} {path} rejected with 401.")
                    raise UnauthorizedError()

                if not 200 <= response.status < 300:
                    logger.warning(f"{method} {path} failed with status {response.status}.")
                    raise ServerError(status=response.status)

                if not expect_body:
                    return {}

                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise PayloadError(f"{method} {path} returned a body that is not JSON.") from e

                if not isinstance(data, dict):
                    raise PayloadError(f"{method} {path} returned {type(data).__name__}, expected an object.")

                logger.debug(f"{method} {path} -> {response.status}")
                return data

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"{method} {path} failed before a response arrived: {e}")
            raise NetworkError(f"{method} {path} failed: {e}") from e
