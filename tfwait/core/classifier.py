"""
Run status classifier.

Decides, for one workspace in one polling tick, whether its latest run is
done, still busy, or waiting on a human to confirm the apply.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from .client import MalformedResponse, TFEClient, TFWaitError
from .models import (
    APPLY_BUSY_STATUSES,
    PLAN_BUSY_STATUSES,
    RunRecord,
    RunResource,
    RunStatus,
    WorkspaceRef,
    WorkspaceResource,
    WorkspaceStatus,
)


logger = logging.getLogger(__name__)


class RunFailed(TFWaitError):
    """Raised when the latest run of a workspace errored."""

    def __init__(self, workspace: WorkspaceRef, url: str):
        super().__init__(f"Latest Terraform run failed for '{workspace.name}'\n View at: {url}")
        self.workspace = workspace
        self.url = url


def get_latest_run(client: TFEClient, ref: WorkspaceRef) -> Optional[RunRecord]:
    """
    Fetch the latest run of a workspace.

    Returns None (after logging a warning) when the workspace has no runs.
    """
    data = client.get_workspace(ref.organization, ref.name)
    try:
        workspace = WorkspaceResource.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse(f"Unexpected workspace resource for '{ref.name}': {e}") from e

    link = workspace.latest_run_link()
    if link is None:
        logger.warning("No runs associated with workspace '%s'", ref.name)
        return None

    data = client.fetch_resource(link)
    try:
        run = RunResource.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse(f"Unexpected run resource for '{ref.name}': {e}") from e

    return RunRecord.from_resource(run, ref, client.base_url)


def classify_run(ref: WorkspaceRef, run: RunRecord, wait_for_apply: bool = False) -> WorkspaceStatus:
    """Classify a run. First matching rule wins."""
    status = run.status

    if status == RunStatus.ERRORED.value:
        raise RunFailed(ref, run.url)

    if status in PLAN_BUSY_STATUSES:
        return WorkspaceStatus(workspace=ref, status=status, done=False)

    if wait_for_apply and not run.plan_only:
        if status == RunStatus.PLANNED.value:
            if not run.auto_apply:
                return WorkspaceStatus(
                    workspace=ref,
                    status=f"{status} (⚠️ waiting for you to run apply at {run.url})",
                    done=False,
                    user_action_required=True,
                )
            return WorkspaceStatus(workspace=ref, status=status, done=False)

        if status in APPLY_BUSY_STATUSES:
            return WorkspaceStatus(workspace=ref, status=status, done=False)

    return WorkspaceStatus(workspace=ref, status=status, done=True)


def classify(client: TFEClient, ref: WorkspaceRef, wait_for_apply: bool = False) -> Optional[WorkspaceStatus]:
    """Fetch and classify the latest run; None means skip this workspace."""
    run = get_latest_run(client, ref)
    if run is None:
        return None
    logger.debug("Workspace %s run %s is %s", ref, run.id, run.status)
    return classify_run(ref, run, wait_for_apply)
