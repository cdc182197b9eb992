from typing import Optional


class HubException(Exception):
    """Base exception for all engine-related errors."""
    pass

class FetchError(HubException):
    """Base for failures that originate from a backend request."""
    pass

class NetworkError(FetchError):
    """Raised when the transport fails and no response is received."""
    def __init__(self, message: str = "Network request failed."):
        super().__init__(message)

class ServerError(FetchError):
    """Raised when the backend answers with a non-2xx status."""
    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        super().__init__(message or f"Backend responded with status {status}.")

class UnauthorizedError(FetchError):
    """Raised on a 401 from an endpoint that requires a session."""
    def __init__(self, message: str = "Session is not authorized."):
        super().__init__(message)

class PayloadError(FetchError):
    """Raised when a successful response body cannot be decoded."""
    pass

class NotAuthenticatedError(HubException):
    """Raised when an operation needs a signed-in user and there is none. No request is made."""
    def __init__(self, message: str = "Please login to save bookmarks."):
        super().__init__(message)

class ToggleInProgressError(HubException):
    """Raised when a bookmark toggle is requested for an id that already has one in flight."""
    def __init__(self, issue_id: int):
        self.issue_id = issue_id
        super().__init__(f"Bookmark toggle for issue {issue_id} is already in progress.")

class ToggleFailedError(HubException):
    """Raised after a bookmark toggle was rolled back because the backend call failed."""
    def __init__(self, issue_id: int, reason: str):
        self.issue_id = issue_id
        self.reason = reason
        super().__init__(f"Failed to toggle bookmark for issue {issue_id}: {reason}")

class SupersededRequestError(HubException):
    """Raised when a response arrives for a request that is no longer the latest for its resource."""
    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"Response for '{resource}' was superseded by a newer request.")
