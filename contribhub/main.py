import asyncio
import logging
import sys
from dotenv import load_dotenv
from pydantic import ValidationError

from contribhub.application.bookmark_sync import BookmarkSynchronizer
from contribhub.application.filter_sort import truncate_description
from contribhub.application.issue_repository import IssueRepository
from contribhub.application.session_gate import SessionGate
from contribhub.application.views import IssueBrowserView
from contribhub.config import Settings
from contribhub.domain.models import Authenticated
from contribhub.infrastructure.api_client import HubApiClient

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


async def browse(settings: Settings) -> None:
    """Activates the issue browser once and logs the requested page."""
    async with HubApiClient(settings.backend_url, session_cookie=settings.session_cookie) as api_client:
        session_gate = SessionGate(api_client)
        repository = IssueRepository(api_client)
        bookmarks = BookmarkSynchronizer(api_client, session_gate)
        view = IssueBrowserView(repository, bookmarks, session_gate)

        await view.enter()
        try:
            if view.error:
                logger.error(f"Could not load issues: {view.error}")
                return

            view.set_search(settings.search)
            view.set_difficulty(settings.difficulty)
            view.set_sort(settings.sort)
            view.go_to_page(settings.page)
            page = view.current_page()

            session = session_gate.session
            if isinstance(session, Authenticated):
                logger.info(f"Signed in as {session.name} with {len(bookmarks.bookmarked_ids)} bookmarks.")
            else:
                logger.info(f"Browsing anonymously. Sign in at {session_gate.login_url}")

            logger.info(
                f"Showing {page.first_item_index} to {page.last_item_index} "
                f"of {page.total_items} issues (page {page.number}/{page.total_pages})."
            )
            for entry in page.items:
                issue = entry.issue
                marker = "*" if entry.bookmarked else " "
                logger.info(
                    f"{marker} #{issue.id} [{issue.difficulty.value}] {issue.repo}: {issue.title} "
                    f"({issue.comments} comments) - {truncate_description(issue.description)}"
                )
            logger.info(f"Pages: {' '.join(str(p) for p in page.summary)}")
        finally:
            view.exit()


def main() -> None:
    # Load environment variables from .env file
    load_dotenv()

    try:
        settings = Settings.from_env()
    except ValidationError as e:
        configure_logging()
        logger.error(f"Invalid configuration (is CONTRIBHUB_BACKEND_URL set?): {e}")
        sys.exit(1)

    configure_logging(settings.log_level)

    try:
        asyncio.run(browse(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user. Exiting gracefully.")
    except Exception as e:
        logger.exception(f"An unexpected error occurred: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
