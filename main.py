import asyncio
import os

from latest_tag.activities import LatestTagActivities
from latest_tag.workflow import LatestTagWorkflow
from application_sdk.application import BaseApplication
from application_sdk.observability.decorators.observability_decorator import (
    observability,
)
from application_sdk.observability.logger_adaptor import get_logger
from application_sdk.observability.metrics_adaptor import get_metrics
from application_sdk.observability.traces_adaptor import get_traces
from latest_tag.config import APP_NAME, DEFAULT_PORT

logger = get_logger(__name__)
metrics = get_metrics()
traces = get_traces()

APPLICATION_NAME = APP_NAME


@observability(logger=logger, metrics=metrics, traces=traces)
async def main():
    logger.info("Starting latest tag resolver application", extra={"application": APPLICATION_NAME})
    app = BaseApplication(name=APPLICATION_NAME)

    await app.setup_workflow(
        workflow_and_activities_classes=[(LatestTagWorkflow, LatestTagActivities)],
    )

    await app.start_worker()

    # health endpoints + readiness
    await app.setup_server(workflow_class=LatestTagWorkflow)

    await app.start_server()
    logger.info("Server started", extra={"port": int(os.getenv("PORT", DEFAULT_PORT))})


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception:
        logger.error("Fatal error on startup", exc_info=True)
        raise
