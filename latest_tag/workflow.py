from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Sequence

from application_sdk.activities import ActivitiesInterface
from application_sdk.observability.decorators.observability_decorator import (
    observability,
)
from application_sdk.observability.logger_adaptor import get_logger
from application_sdk.observability.metrics_adaptor import get_metrics
from application_sdk.observability.traces_adaptor import get_traces
from application_sdk.workflows import WorkflowInterface
from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from latest_tag.activities import LatestTagActivities
    from latest_tag.config import WORKFLOW_ACTIVITY_TIMEOUT_SECONDS
    from latest_tag.utils import parse_repo_url

logger = get_logger(__name__)
workflow.logger = logger
metrics = get_metrics()
traces = get_traces()


@workflow.defn
class LatestTagWorkflow(WorkflowInterface):
    @observability(logger=logger, metrics=metrics, traces=traces)
    @workflow.run
    async def run(self, workflow_config: Dict[str, Any]) -> Dict[str, Any]:
        """
        resolve the latest tag of a repository and how far its default branch has moved past it.
        the ahead-by lookup needs the resolved tag name, so the two steps never overlap.
        """
        resolution_id = workflow_config.get("resolution_id") or workflow.info().run_id[:12]

        activities_instance = LatestTagActivities()

        workflow_args: Dict[str, Any] = await workflow.execute_activity_method(
            activities_instance.get_workflow_args,
            workflow_config,
            start_to_close_timeout=timedelta(seconds=10),
        )

        repo_url = self._extract_parameters(workflow_args, workflow_config)
        self._validate_inputs(repo_url, resolution_id)

        logger.info(f"Resolving latest tag for: {repo_url}", extra={"resolution_id": resolution_id})

        publish_state: Dict[str, Any] = await workflow.execute_activity_method(
            activities_instance.get_repo_publish_state,
            [repo_url, resolution_id],
            start_to_close_timeout=timedelta(seconds=WORKFLOW_ACTIVITY_TIMEOUT_SECONDS),
        )

        ahead_by: Optional[str] = None
        if self._needs_ahead_by(publish_state):
            ahead_by = await workflow.execute_activity_method(
                activities_instance.get_ahead_by_count,
                [repo_url, publish_state["latest_tag"], resolution_id],
                start_to_close_timeout=timedelta(seconds=WORKFLOW_ACTIVITY_TIMEOUT_SECONDS),
            )

        result = self._build_result(repo_url, publish_state, ahead_by)
        logger.info(f"Latest tag resolution completed for: {repo_url}", extra={"resolution_id": resolution_id, "result": result})
        return result

    def _extract_parameters(self, workflow_args: Dict[str, Any], workflow_config: Dict[str, Any]) -> str:
        repo_url = workflow_args.get("repo_url") or workflow_config.get("repo_url") or ""
        return repo_url.strip()

    def _validate_inputs(self, repo_url: str, resolution_id: str) -> None:
        if not repo_url:
            logger.error("No repo_url found in workflow_args", extra={"resolution_id": resolution_id})
            raise ValueError("Repository URL is required")
        # raises ValueError for anything that doesn't name a GitHub repository
        parse_repo_url(repo_url)

    @staticmethod
    def _needs_ahead_by(publish_state: Dict[str, Any]) -> bool:
        return bool(publish_state.get("latest_tag")) and not publish_state.get("is_up_to_date")

    def _build_result(self, repo_url: str, publish_state: Dict[str, Any], ahead_by: Optional[str]) -> Dict[str, Any]:
        owner, repo = parse_repo_url(repo_url)
        return {
            "repository": f"{owner}/{repo}",
            "latest_tag": publish_state.get("latest_tag", False),
            "is_up_to_date": bool(publish_state.get("is_up_to_date", False)),
            "ahead_by": ahead_by,
        }

    @staticmethod
    def get_activities(activities: ActivitiesInterface) -> Sequence[Callable[..., Any]]:
        """return the sequence of activities for registration"""
        if not isinstance(activities, LatestTagActivities):
            raise TypeError("Activities must be an instance of LatestTagActivities")

        return [
            activities.get_workflow_args,
            activities.get_repo_publish_state,
            activities.get_ahead_by_count,
        ]
