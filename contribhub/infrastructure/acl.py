from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from contribhub.domain.models import Anonymous, Authenticated, Difficulty, Issue, Session

# Older catalog rows carry this misspelling of "unknown".
_DIFFICULTY_ALIASES = {"unkown": Difficulty.UNKNOWN.value}


def _parse_timestamp(raw_date: Optional[str], field_name: str) -> datetime:
    if not raw_date:
        raise ValueError(f"{field_name} is required.")
    if not isinstance(raw_date, str):
        raise ValueError(f"{field_name} must be an ISO-8601 string.")
    parsed = datetime.fromisoformat(raw_date.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class HubTranslator:
    """
    Anti-corruption layer that translates raw backend JSON payloads into domain models.
    """

    @staticmethod
    def to_issue(raw_issue: Dict[str, Any]) -> Issue:
        """
        Transforms a raw issue object from the backend into an Issue.

        Args:
            raw_issue (Dict[str, Any]): One element of the ``issues`` array.

        Returns:
            Issue: The immutable domain model for the issue.

        Raises:
            ValueError: If a required field is missing or malformed.
        """
        if not isinstance(raw_issue, dict):
            raise ValueError(f"Issue entry must be an object, got {type(raw_issue).__name__}.")

        raw_difficulty = str(raw_issue.get('difficulty') or Difficulty.UNKNOWN.value).lower()
        raw_difficulty = _DIFFICULTY_ALIASES.get(raw_difficulty, raw_difficulty)

        return Issue(
            id=raw_issue.get('id'),
            title=raw_issue.get('title', ''),
            description=raw_issue.get('description') or '',
            repo=raw_issue.get('repo', ''),
            difficulty=raw_difficulty,
            comments=raw_issue.get('comments') or 0,
            url=raw_issue.get('url', ''),
            created_at=_parse_timestamp(raw_issue.get('createdAt'), 'createdAt'),
            updated_at=_parse_timestamp(raw_issue.get('updatedAt'), 'updatedAt'),
        )

    @staticmethod
    def to_issues(payload: Dict[str, Any]) -> List[Issue]:
        """Translates an ``{issues: [...]}`` envelope, preserving catalog order."""
        raw_issues = payload.get('issues') or []
        if not isinstance(raw_issues, list):
            raise ValueError("issues must be a list.")
        return [HubTranslator.to_issue(raw) for raw in raw_issues]

    @staticmethod
    def to_session(payload: Dict[str, Any]) -> Session:
        """
        Translates the ``{user: {...} | null}`` envelope of the current-user endpoint.
        A null or absent user means nobody is signed in.
        """
        raw_user = payload.get('user')
        if not raw_user:
            return Anonymous()
        if not isinstance(raw_user, dict):
            raise ValueError(f"user must be an object, got {type(raw_user).__name__}.")

        return Authenticated(
            id=raw_user.get('id'),
            login=raw_user.get('login', ''),
            display_name=raw_user.get('name') or None,
            avatar_url=raw_user.get('avatar_url', ''),
            email=raw_user.get('email') or None,
            bio=raw_user.get('bio') or None,
            company=raw_user.get('company') or None,
            location=raw_user.get('location') or None,
            public_repo_count=raw_user.get('public_repos') or 0,
            follower_count=raw_user.get('followers') or 0,
            following_count=raw_user.get('following') or 0,
            joined_at=_parse_timestamp(raw_user.get('created_at'), 'created_at'),
        )
