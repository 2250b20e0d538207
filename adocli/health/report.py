"""Render a TeamHealthReport as JSON or as a condensed terminal report."""

from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from adocli.health.analyzer import get_days_since_update
from adocli.models import ActivitySummary, HealthAlert, MemberWorkload, TeamHealthReport, WorkItem

RULE_WIDTH = 72
SECTION_WIDTH = 40
MAX_ALERT_ITEMS = 5
MAX_WARNING_ITEMS = 3
MAX_UNASSIGNED_ITEMS = 5

_STATUS_ICON = {"ok": "[green]\\[OK][/green]", "warning": "[yellow]\\[~][/yellow]", "alert": "[red]\\[!][/red]"}


def format_json_report(report: TeamHealthReport) -> str:
    """Lossless JSON: every field, every attached work item, camelCase keys."""
    return report.model_dump_json(indent=2, by_alias=True)


def truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def score_style(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 60:
        return "yellow"
    return "red"


def render_report(report: TeamHealthReport, console: Console | None = None, detail: bool = False) -> None:
    """Print the human-readable report. Long item lists are cut short; the report itself is untouched."""
    console = console or Console()
    now = report.generated_at

    _print_header(console, report)
    _print_summary(console, report)
    _print_alerts(console, [a for a in report.alerts if a.severity == "alert"], now)
    _print_warnings(console, [a for a in report.alerts if a.severity in ("warning", "info")], now)
    _print_workload_table(console, report.workload_distribution)
    if report.unassigned_items:
        _print_unassigned(console, report.unassigned_items, detail)
    _print_activity(console, report.recent_activity)
    _print_footer(console)


def _section(console: Console, title: str, style: str = "bold") -> None:
    console.print(f"[{style}]{title}[/{style}]")
    console.print(f"[dim]{'─' * SECTION_WIDTH}[/dim]")


def _print_header(console: Console, report: TeamHealthReport) -> None:
    date = report.generated_at.strftime("%B %d, %Y")
    console.print("")
    console.print(f"[cyan]{'═' * RULE_WIDTH}[/cyan]")
    console.print("[bold cyan]TEAM HEALTH REPORT[/bold cyan]", justify="center", width=RULE_WIDTH)
    console.print(f"[cyan]{escape(report.team.name)} - {date}[/cyan]", justify="center", width=RULE_WIDTH)
    console.print(f"[cyan]{'═' * RULE_WIDTH}[/cyan]")
    console.print("")


def _print_summary(console: Console, report: TeamHealthReport) -> None:
    summary = report.summary
    style = score_style(summary.health_score)

    _section(console, "SUMMARY")
    console.print(
        f"Team Size: [bold]{summary.team_size}[/bold] members | "
        f"Active Items: [bold]{summary.active_items}[/bold] | "
        f"Health Score: [bold {style}]{summary.health_score}/100[/bold {style}]"
    )
    console.print("")

    alerts = sum(1 for a in report.alerts if a.severity == "alert")
    warnings = sum(1 for a in report.alerts if a.severity == "warning")
    infos = sum(1 for a in report.alerts if a.severity == "info")
    if alerts or warnings:
        console.print(
            f"Issues: [bold red]{alerts} alerts[/bold red] | "
            f"[bold yellow]{warnings} warnings[/bold yellow] | [blue]{infos} info[/blue]"
        )
        console.print("")


def _print_alerts(console: Console, alerts: list[HealthAlert], now: datetime) -> None:
    if not alerts:
        return

    _section(console, "ALERTS (Action Required)", "bold red")
    for alert in alerts:
        console.print(f"[red]\\[!] {escape(alert.message)}[/red]")
        items = alert.work_items or []
        for wi in items[:MAX_ALERT_ITEMS]:
            assignee = wi.assigned_to.display_name if wi.assigned_to else "Unassigned"
            console.print(f"[dim]    #{wi.id} {escape(truncate(wi.title, 35))}[/dim]")
            console.print(
                f"[dim]        P{wi.priority or '-'}  {escape(assignee)}  "
                f"{get_days_since_update(wi, now)} days stale[/dim]"
            )
        if len(items) > MAX_ALERT_ITEMS:
            console.print(f"[dim]    ... and {len(items) - MAX_ALERT_ITEMS} more[/dim]")
        console.print("")


def _print_warnings(console: Console, alerts: list[HealthAlert], now: datetime) -> None:
    if not alerts:
        return

    _section(console, "WARNINGS", "bold yellow")
    for alert in alerts:
        prefix = "[yellow]\\[~][/yellow]" if alert.severity == "warning" else "[blue]\\[i][/blue]"
        console.print(f"{prefix} {escape(alert.message)}")
        items = alert.work_items or []
        if len(items) <= MAX_WARNING_ITEMS:
            for wi in items:
                assignee = wi.assigned_to.display_name if wi.assigned_to else "-"
                console.print(
                    f"[dim]    #{wi.id} {escape(truncate(wi.title, 40))}  {escape(wi.state)}  "
                    f"{escape(assignee)}  {get_days_since_update(wi, now)}d[/dim]"
                )
    console.print("")


def _print_workload_table(console: Console, distribution: list[MemberWorkload]) -> None:
    _section(console, "WORKLOAD DISTRIBUTION")

    table = Table(show_edge=False)
    table.add_column("Member", min_width=20)
    table.add_column("Active", justify="right")
    table.add_column("Blocked", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Status")

    for workload in distribution:
        blocked = f"[red]{workload.blocked}[/red]" if workload.blocked else "0"
        table.add_row(
            escape(workload.member.name),
            str(workload.active),
            blocked,
            f"[bold]{workload.total}[/bold]",
            _STATUS_ICON[workload.status],
        )

    console.print(table)
    console.print("")


def _print_unassigned(console: Console, items: list[WorkItem], detail: bool) -> None:
    _section(console, f"UNASSIGNED ITEMS ({len(items)})", "bold red")

    shown = items if detail else items[:MAX_UNASSIGNED_ITEMS]
    for wi in shown:
        title = escape(truncate(wi.title, 45))
        console.print(f"[dim]#{wi.id} \\[{escape(wi.work_item_type)}] {title}  {escape(wi.state)}[/dim]")
    if not detail and len(items) > MAX_UNASSIGNED_ITEMS:
        console.print(f"[dim]... and {len(items) - MAX_UNASSIGNED_ITEMS} more[/dim]")
    console.print("")


def _print_activity(console: Console, activity: ActivitySummary) -> None:
    _section(console, "RECENT ACTIVITY")
    day, week = activity.last_24h, activity.last_7d
    console.print(f"Last 24h: {day.updated} updated, {day.closed} closed, {day.created} created")
    console.print(f"Last 7d:  {week.updated} updated, {week.closed} closed, {week.created} created")
    console.print("")


def _print_footer(console: Console) -> None:
    console.print(f"[cyan]{'═' * RULE_WIDTH}[/cyan]")
    console.print("[dim]Run 'ado team status --json' for machine-readable output[/dim]")
    console.print("[dim]Run 'ado team status --detail' for full work item details[/dim]")
    console.print(f"[cyan]{'═' * RULE_WIDTH}[/cyan]")
    console.print("")
