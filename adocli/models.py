"""Shared pydantic models: the contract between the API client, the analyzer and main.py."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Severity = Literal["alert", "warning", "info"]
AlertCategory = Literal["stale", "blocked", "workload", "unassigned", "high-priority"]
WorkloadStatus = Literal["ok", "warning", "alert"]


class _Frozen(BaseModel):
    # camelCase on the wire (matches Azure DevOps and the --json report), snake_case in Python
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


def _assume_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


# ---------------------------------------------------------------------------
# Azure DevOps records
# ---------------------------------------------------------------------------


class Identity(_Frozen):
    display_name: str = ""
    unique_name: str = ""  # email or UPN


class WorkItem(_Frozen):
    id: int
    rev: int = 0
    title: str
    work_item_type: str
    state: str
    assigned_to: Identity | None = None  # None means unassigned
    created_by: Identity | None = None
    created_date: datetime
    changed_date: datetime
    priority: int | None = None  # 1 (highest) .. 4 (lowest)
    area_path: str = ""
    iteration_path: str = ""
    description: str | None = None
    tags: list[str] = []
    url: str = ""  # web URL, empty when the API omits _links

    @field_validator("created_date", "changed_date")
    @classmethod
    def _naive_is_utc(cls, value: datetime) -> datetime:
        return _assume_utc(value)


class WorkItemComment(_Frozen):
    id: int
    text: str
    created_by: Identity
    created_date: datetime


class PullRequest(_Frozen):
    pull_request_id: int
    title: str
    description: str | None = None
    status: str
    created_by: Identity
    creation_date: datetime
    source_ref_name: str
    target_ref_name: str
    url: str = ""


# ---------------------------------------------------------------------------
# Team configuration
# ---------------------------------------------------------------------------


class TeamMember(_Frozen):
    name: str
    email: str  # primary matching key
    aliases: list[str] = []  # alternate emails or display names


class TeamConfig(_Frozen):
    name: str
    members: list[TeamMember] = []


class HealthThresholds(_Frozen):
    stale_days: int = Field(default=7, ge=0)
    stuck_in_state_days: int = Field(default=14, ge=0)  # reserved, no rule reads it yet
    max_items_per_person: int = Field(default=10, ge=0)
    min_items_per_person: int = Field(default=1, ge=0)
    high_priority_days: int = Field(default=3, ge=0)


class StateCategories(_Frozen):
    active: list[str] = ["Active", "In Progress", "In Development", "New", "Committed"]
    blocked: list[str] = ["Blocked", "On Hold"]
    completed: list[str] = ["Closed", "Done", "Resolved", "Removed"]


class TeamHealthConfig(_Frozen):
    """Persisted unit of team configuration (~/.config/ado-cli/team.toml)."""

    team: TeamConfig
    thresholds: HealthThresholds = Field(default_factory=HealthThresholds)
    states: StateCategories = Field(default_factory=StateCategories)


# ---------------------------------------------------------------------------
# Health report
# ---------------------------------------------------------------------------


class HealthAlert(_Frozen):
    severity: Severity
    category: AlertCategory
    message: str
    work_items: list[WorkItem] | None = None
    member: TeamMember | None = None


class MemberWorkload(_Frozen):
    member: TeamMember
    active: int
    blocked: int
    total: int  # excludes completed items
    items: list[WorkItem]
    status: WorkloadStatus


class ActivityWindow(_Frozen):
    updated: int = 0
    closed: int = 0
    created: int = 0


class ActivitySummary(_Frozen):
    last_24h: ActivityWindow = Field(alias="last24h")
    last_7d: ActivityWindow = Field(alias="last7d")


class HealthSummary(_Frozen):
    team_size: int
    active_items: int
    health_score: int  # 0-100


class TeamHealthReport(_Frozen):
    """Result of one analyzer run, the only thing handed to the renderer."""

    generated_at: datetime
    team: TeamConfig
    summary: HealthSummary
    alerts: list[HealthAlert]
    workload_distribution: list[MemberWorkload]
    unassigned_items: list[WorkItem]
    recent_activity: ActivitySummary
