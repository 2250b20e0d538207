"""Rule-based team health analysis over an already-fetched snapshot of work items.

The analyzer is a pure function of (work items, team, thresholds, state
categories, now). It performs no I/O and never raises on odd data: a state that
matches no category is simply "not categorized", a missing priority counts as
priority 4, a missing assignee lands in the unassigned bucket.

The health score is a heuristic, not a calibrated metric. Every alert deducts
points scaled by the number of affected items and capped per alert:

    alert    min(15, n * 5)
    warning  min(10, n * 2)
    info     min(5, n)
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from adocli.models import (
    ActivitySummary,
    ActivityWindow,
    HealthAlert,
    HealthSummary,
    HealthThresholds,
    Identity,
    MemberWorkload,
    StateCategories,
    TeamConfig,
    TeamHealthReport,
    TeamMember,
    WorkItem,
)

logger = logging.getLogger(__name__)

LONG_BLOCKED_DAYS = 7
LOWEST_PRIORITY = 4
HIGH_PRIORITY_CUTOFF = 2  # P1 and P2

_SCORE_WEIGHTS = {"alert": (5, 15), "warning": (2, 10), "info": (1, 5)}  # (per item, cap)


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


def _in_states(item: WorkItem, states: Iterable[str]) -> bool:
    current = item.state.lower()
    return any(current == s.lower() for s in states)


def _priority(item: WorkItem) -> int:
    return item.priority or LOWEST_PRIORITY


def get_days_since_update(item: WorkItem, now: datetime | None = None) -> int:
    """Whole days since the item last changed, rounded down."""
    now = now or datetime.now(UTC)
    return (now - item.changed_date) // timedelta(days=1)


def matches_member(assignee: Identity, member: TeamMember) -> bool:
    """True if the assignee is the member by email, display name or any alias (case-insensitive)."""
    email = assignee.unique_name.lower()
    name = assignee.display_name.lower()
    aliases = [a.lower() for a in member.aliases]

    if email and (email == member.email.lower() or email in aliases):
        return True
    if name and (name == member.name.lower() or name in aliases):
        return True
    return False


class HealthAnalyzer:
    def __init__(self, thresholds: HealthThresholds, states: StateCategories) -> None:
        self.thresholds = thresholds
        self.states = states

    def is_completed(self, item: WorkItem) -> bool:
        return _in_states(item, self.states.completed)

    def is_blocked(self, item: WorkItem) -> bool:
        return _in_states(item, self.states.blocked)

    def is_active(self, item: WorkItem) -> bool:
        return _in_states(item, self.states.active)

    def analyze_team_health(
        self,
        work_items: Sequence[WorkItem],
        team: TeamConfig,
        now: datetime | None = None,
    ) -> TeamHealthReport:
        now = now or datetime.now(UTC)

        alerts: list[HealthAlert] = []
        alerts += self.detect_stale_items(work_items, now)
        alerts += self.detect_blocked_items(work_items, now)
        alerts += self.detect_high_priority_at_risk(work_items, now)
        alerts += self.detect_workload_imbalance(work_items, team)

        unassigned = self.get_unassigned_items(work_items)
        if unassigned:
            alerts.append(
                HealthAlert(
                    severity="alert",
                    category="unassigned",
                    message=f"{len(unassigned)} unassigned work item{_plural(len(unassigned))}",
                    work_items=unassigned,
                )
            )

        score = calculate_health_score(alerts)
        active_items = len([wi for wi in work_items if not self.is_completed(wi)])
        logger.debug(
            "Analyzed %d work items for %s: %d alerts, score %d", len(work_items), team.name, len(alerts), score
        )

        return TeamHealthReport(
            generated_at=now,
            team=team,
            summary=HealthSummary(team_size=len(team.members), active_items=active_items, health_score=score),
            alerts=alerts,
            workload_distribution=self.calculate_workload_distribution(work_items, team),
            unassigned_items=unassigned,
            recent_activity=self.calculate_activity_summary(work_items, now),
        )

    # -----------------------------------------------------------------------
    # Detection rules
    # -----------------------------------------------------------------------

    def detect_stale_items(self, work_items: Sequence[WorkItem], now: datetime) -> list[HealthAlert]:
        days = self.thresholds.stale_days
        stale = [
            wi for wi in work_items if not self.is_completed(wi) and now - wi.changed_date > timedelta(days=days)
        ]
        high = [wi for wi in stale if _priority(wi) <= HIGH_PRIORITY_CUTOFF]
        regular = [wi for wi in stale if _priority(wi) > HIGH_PRIORITY_CUTOFF]

        alerts = []
        if high:
            alerts.append(
                HealthAlert(
                    severity="alert",
                    category="stale",
                    message=f"{len(high)} high priority item{_plural(len(high))} stale > {days} days",
                    work_items=high,
                )
            )
        if regular:
            alerts.append(
                HealthAlert(
                    severity="warning",
                    category="stale",
                    message=f"{len(regular)} item{_plural(len(regular))} not updated in {days}+ days",
                    work_items=regular,
                )
            )
        return alerts

    def detect_blocked_items(self, work_items: Sequence[WorkItem], now: datetime) -> list[HealthAlert]:
        # ChangedDate approximates when the item entered the blocked state
        long_blocked: list[WorkItem] = []
        recent_blocked: list[WorkItem] = []
        for wi in work_items:
            if not self.is_blocked(wi):
                continue
            if now - wi.changed_date > timedelta(days=LONG_BLOCKED_DAYS):
                long_blocked.append(wi)
            else:
                recent_blocked.append(wi)

        alerts = []
        if long_blocked:
            alerts.append(
                HealthAlert(
                    severity="alert",
                    category="blocked",
                    message=f"{len(long_blocked)} item{_plural(len(long_blocked))} blocked > {LONG_BLOCKED_DAYS} days",
                    work_items=long_blocked,
                )
            )
        if recent_blocked:
            alerts.append(
                HealthAlert(
                    severity="warning",
                    category="blocked",
                    message=f"{len(recent_blocked)} item{_plural(len(recent_blocked))} currently blocked",
                    work_items=recent_blocked,
                )
            )
        return alerts

    def detect_high_priority_at_risk(self, work_items: Sequence[WorkItem], now: datetime) -> list[HealthAlert]:
        days = self.thresholds.high_priority_days
        at_risk = [
            wi
            for wi in work_items
            if not self.is_completed(wi)
            and _priority(wi) <= HIGH_PRIORITY_CUTOFF
            and now - wi.changed_date > timedelta(days=days)
        ]
        if not at_risk:
            return []
        return [
            HealthAlert(
                severity="alert",
                category="high-priority",
                message=(
                    f"{len(at_risk)} high priority item{_plural(len(at_risk))} at risk (no progress in {days}+ days)"
                ),
                work_items=at_risk,
            )
        ]

    def detect_workload_imbalance(self, work_items: Sequence[WorkItem], team: TeamConfig) -> list[HealthAlert]:
        counts = self._count_open_items(work_items, team)
        max_items = self.thresholds.max_items_per_person
        min_items = self.thresholds.min_items_per_person

        alerts = []
        for member in team.members:
            count = counts[member.email.lower()]
            if count > max_items:
                alerts.append(
                    HealthAlert(
                        severity="warning",
                        category="workload",
                        message=f"{member.name}: {count} items (above threshold of {max_items})",
                        member=member,
                    )
                )
            elif count < min_items:
                alerts.append(
                    HealthAlert(
                        severity="info",
                        category="workload",
                        message=f"{member.name}: {count} items (below threshold of {min_items})",
                        member=member,
                    )
                )
        return alerts

    def get_unassigned_items(self, work_items: Sequence[WorkItem]) -> list[WorkItem]:
        return [wi for wi in work_items if not self.is_completed(wi) and wi.assigned_to is None]

    def _count_open_items(self, work_items: Sequence[WorkItem], team: TeamConfig) -> dict[str, int]:
        """Non-completed item count per member, keyed by lowercased email."""
        counts = {m.email.lower(): 0 for m in team.members}
        for wi in work_items:
            if self.is_completed(wi) or wi.assigned_to is None:
                continue
            email = wi.assigned_to.unique_name.lower()
            if email and email in counts:
                counts[email] += 1
                continue
            for member in team.members:
                if matches_member(wi.assigned_to, member):
                    counts[member.email.lower()] += 1
                    break
        return counts

    # -----------------------------------------------------------------------
    # Aggregates
    # -----------------------------------------------------------------------

    def calculate_workload_distribution(
        self, work_items: Sequence[WorkItem], team: TeamConfig
    ) -> list[MemberWorkload]:
        distribution = []
        for member in team.members:
            items = [wi for wi in work_items if wi.assigned_to is not None and matches_member(wi.assigned_to, member)]
            total = len([wi for wi in items if not self.is_completed(wi)])

            status = "ok"
            if total > self.thresholds.max_items_per_person:
                status = "alert"
            elif total < self.thresholds.min_items_per_person:
                status = "warning"

            distribution.append(
                MemberWorkload(
                    member=member,
                    active=len([wi for wi in items if self.is_active(wi)]),
                    blocked=len([wi for wi in items if self.is_blocked(wi)]),
                    total=total,
                    items=items,
                    status=status,
                )
            )
        # sorted() is stable, so ties keep roster order
        return sorted(distribution, key=lambda w: w.total, reverse=True)

    def calculate_activity_summary(self, work_items: Sequence[WorkItem], now: datetime) -> ActivitySummary:
        windows = {"last_24h": now - timedelta(days=1), "last_7d": now - timedelta(days=7)}
        counts = {key: {"updated": 0, "closed": 0, "created": 0} for key in windows}

        for wi in work_items:
            closed = self.is_completed(wi)
            for key, since in windows.items():
                if wi.changed_date >= since:
                    counts[key]["updated"] += 1
                    if closed:
                        counts[key]["closed"] += 1
                if wi.created_date >= since:
                    counts[key]["created"] += 1

        return ActivitySummary(
            last_24h=ActivityWindow(**counts["last_24h"]),
            last_7d=ActivityWindow(**counts["last_7d"]),
        )


def calculate_health_score(alerts: Iterable[HealthAlert]) -> int:
    """100 minus the capped, severity-weighted deduction of every alert, clamped to 0-100."""
    score = 100
    for alert in alerts:
        item_count = len(alert.work_items) if alert.work_items else 1
        per_item, cap = _SCORE_WEIGHTS[alert.severity]
        score -= min(cap, item_count * per_item)
    return max(0, min(100, round(score)))
