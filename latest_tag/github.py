import asyncio
from typing import Any, Dict, List, Optional, Tuple

import httpx
from application_sdk.observability.logger_adaptor import get_logger
from bs4 import BeautifulSoup
from github import Auth, Github
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from latest_tag.config import (
    DEFAULT_USER_AGENT,
    GITHUB_API_URL,
    GITHUB_TOKEN,
    GITHUB_WEB_URL,
    HTTP_TIMEOUT_SECONDS,
    TAG_QUERY_LIMIT,
)
from latest_tag.resilience import graphql_breaker, release_page_breaker
from latest_tag.resolution import Tag, tags_from_nodes
from latest_tag.utils import digits_only, release_tag_path

logger = get_logger(__name__)

PUBLISH_METADATA_QUERY = """
query($owner: String!, $name: String!, $limit: Int!) {
  repository(owner: $owner, name: $name) {
    refs(first: $limit, refPrefix: "refs/tags/", orderBy: {field: TAG_COMMIT_DATE, direction: DESC}) {
      nodes {
        name
        tag: target {
          oid
          ... on Tag {
            commit: target {
              oid
            }
          }
        }
      }
    }
    defaultBranchRef {
      target {
        oid
      }
    }
  }
}
"""

# The link reads "4 commits to master since this tag"
AHEAD_BY_SELECTOR = '.release-header relative-time + a[href*="/compare/"]'


class ReleasePageError(LookupError):
    """The release page has no ahead-by link (usually: the branch already matches the tag)."""


def extract_ahead_by(document: BeautifulSoup) -> str:
    anchor = document.select_one(AHEAD_BY_SELECTOR)
    if anchor is None:
        raise ReleasePageError("No compare link found on the release page")
    return digits_only(anchor.get_text())


class GitHubClient:
    def __init__(
        self,
        token: Optional[str] = GITHUB_TOKEN,
        web_url: str = GITHUB_WEB_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        auth = Auth.Token(token) if token else None
        self.github = Github(auth=auth, base_url=GITHUB_API_URL, user_agent=DEFAULT_USER_AGENT)
        self.web_url = web_url.rstrip("/")
        self._transport = transport

    # retry wrapper for github calls
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(Exception),
        reraise=True,
    )
    def _graphql(self, variables: Dict[str, Any]) -> Dict[str, Any]:
        _, response = self.github.requester.graphql_query(PUBLISH_METADATA_QUERY, variables)
        return response["data"]

    @graphql_breaker
    async def query_publish_metadata(self, owner: str, repo: str) -> Tuple[List[Tag], Optional[str]]:
        """
        Returns the newest tags by commit date (newest first) and the default
        branch head, or None for a repository without commits.
        """
        data = await asyncio.to_thread(
            self._graphql, {"owner": owner, "name": repo, "limit": TAG_QUERY_LIMIT}
        )
        repository = data.get("repository")
        if repository is None:
            raise ValueError(f"Repository {owner}/{repo} not found")

        tags = tags_from_nodes(repository["refs"]["nodes"])
        default_branch_ref = repository.get("defaultBranchRef")
        default_branch_commit = default_branch_ref["target"]["oid"] if default_branch_ref else None
        logger.debug(
            "Fetched tag metadata",
            extra={"repository": f"{owner}/{repo}", "tag_count": len(tags)},
        )
        return tags, default_branch_commit

    @release_page_breaker
    async def fetch_release_page(self, owner: str, repo: str, tag: str) -> BeautifulSoup:
        url = f"{self.web_url}{release_tag_path(owner, repo, tag)}"
        async with httpx.AsyncClient(
            timeout=HTTP_TIMEOUT_SECONDS,
            headers={"User-Agent": DEFAULT_USER_AGENT},
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
        return BeautifulSoup(response.text, "html.parser")
