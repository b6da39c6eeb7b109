"""
Core data models for tfwait.

The JSON:API resources returned by Terraform Cloud are validated with
Pydantic so that a response missing a required field fails loudly instead
of surfacing as a KeyError deep inside the classifier.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RunStatus(str, Enum):
    """Run statuses that drive branching. Anything else is treated as done."""

    PENDING = "pending"
    PLAN_QUEUED = "plan_queued"
    PLANNING = "planning"
    PLANNED = "planned"
    APPLY_QUEUED = "apply_queued"
    APPLYING = "applying"
    APPLIED = "applied"
    DISCARDED = "discarded"
    CANCELED = "canceled"
    ERRORED = "errored"


PLAN_BUSY_STATUSES = {RunStatus.PLANNING.value, RunStatus.PLAN_QUEUED.value}
APPLY_BUSY_STATUSES = {RunStatus.APPLYING.value, RunStatus.APPLY_QUEUED.value}


class WorkspaceRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    organization: str
    name: str

    def __str__(self) -> str:
        return f"{self.organization}/{self.name}"


def parse_workspace_refs(organization: str, workspaces: str | list[str]) -> list[WorkspaceRef]:
    """
    Build WorkspaceRefs from a comma-separated string or a list of names.

    Names are trimmed and empty entries dropped; input order is kept.
    """
    if isinstance(workspaces, str):
        names = workspaces.split(",")
    else:
        names = list(workspaces)

    refs = []
    for name in names:
        name = name.strip()
        if name:
            refs.append(WorkspaceRef(organization=organization, name=name))
    return refs


# ============================================================================
# JSON:API resources
# ============================================================================

class RelationshipLinks(BaseModel):
    related: str


class Relationship(BaseModel):
    links: Optional[RelationshipLinks] = None
    data: Optional[dict] = None


class WorkspaceRelationships(BaseModel):
    latest_run: Optional[Relationship] = Field(default=None, alias="latest-run")

    model_config = ConfigDict(populate_by_name=True)


class WorkspaceResource(BaseModel):
    id: Optional[str] = None
    type: str = "workspaces"
    relationships: WorkspaceRelationships = Field(default_factory=WorkspaceRelationships)

    def latest_run_link(self) -> Optional[str]:
        """Related link of the latest run, or None if the workspace never ran."""
        latest = self.relationships.latest_run
        if latest is None or latest.links is None:
            return None
        # An explicit null resource identifier means there is no run behind the link
        if "data" in latest.model_fields_set and latest.data is None:
            return None
        return latest.links.related


class RunAttributes(BaseModel):
    status: str
    plan_only: Optional[bool] = Field(default=None, alias="plan-only")
    auto_apply: Optional[bool] = Field(default=None, alias="auto-apply")

    model_config = ConfigDict(populate_by_name=True)


class RunResource(BaseModel):
    id: str
    type: str = "runs"
    attributes: RunAttributes


# ============================================================================
# Classifier models
# ============================================================================

class RunRecord(BaseModel):
    """The latest run of a workspace, as seen in one polling tick."""

    id: str
    status: str
    plan_only: bool = False
    auto_apply: bool = False
    url: str

    @classmethod
    def from_resource(cls, resource: RunResource, ref: WorkspaceRef, base_url: str) -> RunRecord:
        attrs = resource.attributes
        return cls(
            id=resource.id,
            status=attrs.status,
            plan_only=attrs.plan_only is True,
            auto_apply=attrs.auto_apply is True,
            url=run_url(base_url, ref, resource.id),
        )


class WorkspaceStatus(BaseModel):
    """Verdict for one workspace in one tick."""

    workspace: WorkspaceRef
    status: str
    done: bool
    user_action_required: Optional[bool] = None


def run_url(base_url: str, ref: WorkspaceRef, run_id: str) -> str:
    """Deep link to a run in the Terraform Cloud UI."""
    return f"{base_url.rstrip('/')}/app/{ref.organization}/workspaces/{ref.name}/runs/{run_id}"
