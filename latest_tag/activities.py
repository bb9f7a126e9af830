from datetime import timedelta
from typing import Any, Dict, List, Optional

from application_sdk.activities import ActivitiesInterface
from application_sdk.activities.common.utils import auto_heartbeater
from application_sdk.observability.logger_adaptor import get_logger
from temporalio import activity

from latest_tag.cache import CacheStore, cached_function
from latest_tag.config import (
    AHEAD_BY_MAX_AGE_DAYS,
    AHEAD_BY_STALE_WHILE_REVALIDATE_DAYS,
    FEATURE_NAME,
    PUBLISH_STATE_MAX_AGE_DAYS,
)
from latest_tag.github import GitHubClient, extract_ahead_by
from latest_tag.resolution import resolve_publish_state
from latest_tag.utils import parse_repo_url, repo_slug

logger = get_logger(__name__)
activity.logger = logger


def is_outdated_publish_state(value: Any) -> bool:
    # entries written before the state became an object were plain tag names
    return not (isinstance(value, dict) and "latest_tag" in value and "is_up_to_date" in value)


def publish_state_key(slug: str) -> str:
    return f"{FEATURE_NAME}:{slug}"


def ahead_by_key(slug: str, _latest_tag: Optional[str] = None) -> str:
    """
    One count per repository; the tag is accepted only because the cached
    lookup receives it. After a new release the count against the previous
    tag can still be served until the entry expires (up to three days).
    """
    return f"{FEATURE_NAME}:aheadBy:{slug}"


class LatestTagActivities(ActivitiesInterface):
    def __init__(self, client: Optional[GitHubClient] = None, store: Optional[CacheStore] = None):
        self._client = client
        self.publish_state = cached_function(
            max_age=timedelta(days=PUBLISH_STATE_MAX_AGE_DAYS),
            should_revalidate=is_outdated_publish_state,
            cache_key=publish_state_key,
            store=store,
        )(self._compute_publish_state)
        self.ahead_by = cached_function(
            max_age=timedelta(days=AHEAD_BY_MAX_AGE_DAYS),
            stale_while_revalidate=timedelta(days=AHEAD_BY_STALE_WHILE_REVALIDATE_DAYS),
            cache_key=ahead_by_key,
            store=store,
        )(self._compute_ahead_by)

    @property
    def client(self) -> GitHubClient:
        # created on first use; the workflow only needs this class for activity names
        if self._client is None:
            self._client = GitHubClient()
        return self._client

    async def _compute_publish_state(self, slug: str) -> Dict[str, Any]:
        owner, repo = parse_repo_url(slug)
        tags, default_branch_commit = await self.client.query_publish_metadata(owner, repo)
        return resolve_publish_state(tags, default_branch_commit).to_dict()

    async def _compute_ahead_by(self, slug: str, latest_tag: str) -> str:
        owner, repo = parse_repo_url(slug)
        document = await self.client.fetch_release_page(owner, repo, latest_tag)
        return extract_ahead_by(document)

    @activity.defn(name="get_repo_publish_state")
    @auto_heartbeater
    async def get_repo_publish_state(self, args: List[Any]) -> Dict[str, Any]:
        """
        args: [repo_url, resolution_id]
        returns {"latest_tag": str | False, "is_up_to_date": bool}
        """
        repo_url, resolution_id = args
        logger.info("Resolving repository publish state", extra={"repo_url": repo_url, "resolution_id": resolution_id})
        try:
            return await self.publish_state(repo_slug(repo_url))
        except Exception as e:
            logger.error("Error resolving publish state", exc_info=e, extra={"repo_url": repo_url})
            raise

    @activity.defn(name="get_ahead_by_count")
    @auto_heartbeater
    async def get_ahead_by_count(self, args: List[Any]) -> str:
        """
        args: [repo_url, latest_tag, resolution_id]
        only meaningful once the publish state says the tag is not up to date
        """
        repo_url, latest_tag, resolution_id = args
        logger.info(
            "Resolving ahead-by count",
            extra={"repo_url": repo_url, "latest_tag": latest_tag, "resolution_id": resolution_id},
        )
        try:
            return await self.ahead_by(repo_slug(repo_url), latest_tag)
        except Exception as e:
            logger.error("Error resolving ahead-by count", exc_info=e, extra={"repo_url": repo_url, "latest_tag": latest_tag})
            raise
