from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

# Marker emitted in a page-index summary in place of a collapsed run of pages.
ELLIPSIS = "..."


class Difficulty(str, Enum):
    """Difficulty level assigned to an issue by the catalog."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    UNKNOWN = "unknown"


class DifficultyFilter(str, Enum):
    """Difficulty restriction of a view; ALL lets every issue through."""
    ALL = "all"
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    UNKNOWN = "unknown"


class SortMode(str, Enum):
    """Ordering of a view, by comment count or creation time."""
    COMMENTS_DESC = "comments-desc"
    COMMENTS_ASC = "comments-asc"
    NEWEST = "newest"
    OLDEST = "oldest"


class Issue(BaseModel):
    """
    Immutable domain model representing an open-source issue from the catalog.
    A refetch of the catalog replaces these wholesale; they are never patched.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Server-assigned issue identifier")
    title: str = Field(..., description="Issue title")
    description: str = Field("", description="Markdown body of the issue")
    repo: str = Field(..., description="Repository the issue belongs to")
    difficulty: Difficulty = Field(Difficulty.UNKNOWN, description="Estimated difficulty")
    comments: int = Field(0, ge=0, description="Number of comments on the issue")
    url: str = Field(..., description="Link to the issue on its host")
    created_at: datetime = Field(..., description="Timestamp the issue was opened")
    updated_at: datetime = Field(..., description="Timestamp of the last update")


class Anonymous(BaseModel):
    """No user is signed in."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["anonymous"] = "anonymous"

    @property
    def is_authenticated(self) -> bool:
        return False


class Authenticated(BaseModel):
    """A signed-in user together with their public profile."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["authenticated"] = "authenticated"
    id: int
    login: str
    display_name: Optional[str] = None
    avatar_url: str
    email: Optional[str] = None
    bio: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    public_repo_count: int = Field(0, ge=0)
    follower_count: int = Field(0, ge=0)
    following_count: int = Field(0, ge=0)
    joined_at: datetime

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def name(self) -> str:
        return self.display_name or self.login

    @property
    def profile_url(self) -> str:
        return f"https://github.com/{self.login}"


Session = Annotated[Union[Anonymous, Authenticated], Field(discriminator="kind")]


class ViewQuery(BaseModel):
    """Search, filter and sort inputs of an issue list."""
    model_config = ConfigDict(frozen=True)

    search: str = ""
    difficulty: DifficultyFilter = DifficultyFilter.ALL
    sort: SortMode = SortMode.COMMENTS_DESC


class DecoratedIssue(BaseModel):
    """An issue paired with the current user's bookmark state for it."""
    model_config = ConfigDict(frozen=True)

    issue: Issue
    bookmarked: bool = False


class Page(BaseModel):
    """One page of an ordered list plus what navigation controls need to render."""
    model_config = ConfigDict(frozen=True)

    items: Tuple[Any, ...] = ()
    number: int = Field(1, ge=1)
    size: int = Field(..., ge=1)
    total_items: int = Field(0, ge=0)
    total_pages: int = Field(0, ge=0)
    summary: Tuple[Union[int, str], ...] = ()

    @property
    def first_item_index(self) -> int:
        """1-based index of the first item on the page, 0 for an empty page."""
        if not self.items:
            return 0
        return (self.number - 1) * self.size + 1

    @property
    def last_item_index(self) -> int:
        if not self.items:
            return 0
        return self.first_item_index + len(self.items) - 1

    @property
    def has_previous(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages
