"""ado CLI: every command and sub-command."""

import html
import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager, nullcontext
from datetime import UTC, datetime
from typing import Annotated

import httpx
import typer
from pydantic import SecretStr, ValidationError
from pydantic.alias_generators import to_camel
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from adocli import client as fields
from adocli.client import AdoClient, patch_op
from adocli.health.analyzer import HealthAnalyzer
from adocli.health.report import format_json_report, render_report, truncate
from adocli.models import HealthThresholds, TeamConfig, TeamHealthConfig, TeamMember, WorkItem
from adocli.settings import (
    CONFIG_PATH,
    clear_token,
    default_state_categories,
    default_thresholds,
    get_settings,
    load_team_config,
    parse_repo,
    require_repo,
    require_token,
    save_config,
    save_team_config,
)
from adocli.wiql import build_list_query

app = typer.Typer(help="ado: Azure DevOps CLI with GitHub CLI compatibility", no_args_is_help=True)
auth_app = typer.Typer(help="Manage authentication", no_args_is_help=True)
repo_app = typer.Typer(help="Manage repository settings", no_args_is_help=True)
workitem_app = typer.Typer(help="Manage Azure DevOps work items", no_args_is_help=True)
pr_app = typer.Typer(help="Manage pull requests", no_args_is_help=True)
team_app = typer.Typer(help="Team health and workload management", no_args_is_help=True)

app.add_typer(auth_app, name="auth")
app.add_typer(repo_app, name="repo")
app.add_typer(workitem_app, name="workitem")
app.add_typer(workitem_app, name="wi", hidden=True)
app.add_typer(pr_app, name="pr")
app.add_typer(team_app, name="team")

console = Console()
err_console = Console(stderr=True)

RepoOpt = Annotated[
    str | None,
    typer.Option("--repo", "-R", help="Target organization/project"),
]
RepositoryOpt = Annotated[str, typer.Option("--repository", "-r", help="Git repository name or ID")]

_TEAM_NOT_CONFIGURED = '[yellow]Team not configured. Run "ado team init" first.[/yellow]'

_STATE_STYLE = {
    "NEW": "blue",
    "ACTIVE": "yellow",
    "IN PROGRESS": "yellow",
    "IN DEVELOPMENT": "cyan",
    "TESTING": "cyan",
    "REVIEW": "magenta",
    "BLOCKED": "red",
    "ON HOLD": "red",
    "RESOLVED": "green",
    "DONE": "green",
    "CLOSED": "dim",
    "REMOVED": "red",
}
_PRIORITY_STYLE = {1: "red", 2: "yellow", 3: "blue", 4: "dim"}


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log HTTP requests and analysis details")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


# ---------------------------------------------------------------------------
# Client factory
# ---------------------------------------------------------------------------


def get_client(repo: str | None = None) -> AdoClient:
    settings = get_settings(repo=repo)
    require_repo(settings)
    require_token(settings)
    return AdoClient(settings)


@contextmanager
def api_errors() -> Iterator[None]:
    """Turn API/config failures into a red message and exit code 1."""
    try:
        yield
    except (RuntimeError, httpx.HTTPError) as exc:
        rprint(f"[red]Error: {escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def styled_state(state: str) -> str:
    style = _STATE_STYLE.get(state.upper(), "white")
    return f"[{style}]{escape(state.upper())}[/{style}]"


def strip_html(text: str | None) -> str:
    """Reduce Azure DevOps rich-text (HTML) to plain terminal text."""
    if not text:
        return ""
    return html.unescape(re.sub(r"<[^>]*>", "", text)).replace("\xa0", " ").strip()


def format_age(when: datetime, now: datetime | None = None) -> str:
    days = ((now or datetime.now(UTC)) - when).days
    if days <= 0:
        return "today"
    if days == 1:
        return "yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        weeks = days // 7
        return f"{weeks} week{'s' if weeks > 1 else ''} ago"
    return when.strftime("%Y-%m-%d")


def split_labels(labels: str | None) -> list[str]:
    return [label.strip() for label in (labels or "").split(",") if label.strip()]


def _identity_value(assignee: str) -> str:
    return "@Me" if assignee.lower() == "@me" else assignee


def _print_work_item_result(item: WorkItem, verb: str) -> None:
    rprint(f"[green]✓[/green] Work item #{item.id} {verb}")
    rprint(f"  Title: {escape(item.title)}")
    rprint(f"  State: {styled_state(item.state)}")


# ---------------------------------------------------------------------------
# auth
# ---------------------------------------------------------------------------


@auth_app.command("login")
def auth_login(repo: RepoOpt = None) -> None:
    """Authenticate with a Personal Access Token."""
    settings = get_settings(repo=repo)
    rprint("[bold blue]Azure DevOps Authentication[/bold blue]")
    rprint("")

    organization, project = settings.organization, settings.project
    if not organization or not project:
        rprint("[yellow]No default organization/project configured.[/yellow]")
        organization = typer.prompt("Azure DevOps organization", default=organization or "").strip()
        project = typer.prompt("Azure DevOps project", default=project or "").strip()
        if not organization or not project:
            rprint("[red]Organization and project are required.[/red]")
            raise typer.Exit(1)

    rprint("Create a Personal Access Token at: https://dev.azure.com → User Settings → Personal Access Tokens")
    rprint("Required scopes: Work Items (Read & Write), Code (Read & Write) for pull requests")
    token = typer.prompt("Paste token", hide_input=True).strip()
    if not token:
        rprint("[red]Token is required.[/red]")
        raise typer.Exit(1)

    candidate = settings.model_copy(
        update={"organization": organization, "project": project, "token": SecretStr(token)}
    )
    if not AdoClient(candidate).test_connection():
        rprint("[red]Authentication failed: invalid token or insufficient permissions.[/red]")
        raise typer.Exit(1)

    save_config(organization=organization, project=project, token=token)
    repository = f"{escape(organization)}/{escape(project)}"
    rprint(f"[green]✓[/green] Authenticated. Default repository: [cyan]{repository}[/cyan]")


@auth_app.command("status")
def auth_status(repo: RepoOpt = None) -> None:
    """Check authentication status."""
    settings = get_settings(repo=repo)
    if not settings.token:
        rprint("[red]✗ Not authenticated[/red]")
        rprint("Run `ado auth login` to authenticate")
        return
    if not settings.repository:
        rprint("[yellow]Token stored, but no default repository set.[/yellow]")
        rprint("Use `-R organization/project` or `ado repo set-default organization/project`")
        return

    if AdoClient(settings).test_connection():
        rprint("[green]✓ Authenticated[/green]")
        rprint(f"Default repository: [cyan]{escape(settings.repository)}[/cyan]")
    else:
        rprint("[red]✗ Token is invalid or expired[/red]")
        rprint("Run `ado auth login` to re-authenticate")


@auth_app.command("logout")
def auth_logout() -> None:
    """Remove the stored token."""
    clear_token()
    rprint(f"[green]✓[/green] Logged out. Token removed from {CONFIG_PATH}")


# ---------------------------------------------------------------------------
# repo
# ---------------------------------------------------------------------------


@repo_app.command("set-default")
def repo_set_default(
    org_project: Annotated[str, typer.Argument(metavar="ORG/PROJECT", help="Organization and project")],
) -> None:
    """Set the default organization and project."""
    try:
        organization, project = parse_repo(org_project)
    except ValueError as exc:
        rprint(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc
    save_config(organization=organization, project=project)
    rprint(f"[green]✓[/green] Default repository set to: [cyan]{escape(org_project)}[/cyan]")


@repo_app.command("view")
def repo_view() -> None:
    """Show the default repository."""
    settings = get_settings()
    if settings.repository:
        rprint(f"Default repository: [cyan]{escape(settings.repository)}[/cyan]")
    else:
        rprint("[yellow]No default repository set[/yellow]")
        rprint("Use `ado repo set-default organization/project` to set one")


# ---------------------------------------------------------------------------
# workitem
# ---------------------------------------------------------------------------


@workitem_app.command("list")
def workitem_list(
    assignee: Annotated[str | None, typer.Option("--assignee", "-a", help="Filter by assignee (@me for you)")] = None,
    author: Annotated[str | None, typer.Option("--author", "-A", help="Filter by creator")] = None,
    state: Annotated[str | None, typer.Option("--state", "-s", help="Filter by state")] = None,
    work_item_type: Annotated[str | None, typer.Option("--type", "-t", help="Filter by work item type")] = None,
    area: Annotated[str | None, typer.Option("--area", help="Filter by area path")] = None,
    iteration: Annotated[str | None, typer.Option("--iteration", help="Filter by iteration path")] = None,
    search: Annotated[str | None, typer.Option("--search", "-S", help="Search titles and descriptions")] = None,
    limit: Annotated[int, typer.Option("--limit", "-L", min=1, help="Maximum number of items")] = 30,
    sort: Annotated[str, typer.Option("--sort", help="created, updated, priority or title")] = "created",
    order: Annotated[str, typer.Option("--order", help="asc or desc")] = "desc",
    full: Annotated[bool, typer.Option("--full", help="Show full titles")] = False,
    web: Annotated[bool, typer.Option("--web", help="Print work item URLs")] = False,
    repo: RepoOpt = None,
) -> None:
    """List work items."""
    settings = get_settings(repo=repo)
    client = get_client(repo)
    wiql = build_list_query(
        settings.project or "",
        assignee=assignee,
        author=author,
        state=state,
        work_item_type=work_item_type,
        area=area,
        iteration=iteration,
        search=search,
        sort=sort,
        order=order,
    )
    with api_errors(), err_console.status("Fetching work items..."):
        items = client.query_work_items(wiql, limit=limit)

    if not items:
        rprint("[yellow]No work items found matching the criteria.[/yellow]")
        return

    table = Table(box=None)
    table.add_column("ID", style="cyan")
    table.add_column("Status")
    table.add_column("Type")
    table.add_column("Assignee")
    table.add_column("Title")

    for wi in items:
        assigned = wi.assigned_to.display_name if wi.assigned_to else "Unassigned"
        title = wi.title if full else truncate(wi.title, 48)
        table.add_row(str(wi.id), styled_state(wi.state), escape(wi.work_item_type), escape(assigned), escape(title))

    rprint(table)
    rprint(f"[dim]Showing {len(items)} work items[/dim]")

    if web:
        rprint("")
        for wi in items:
            if wi.url:
                rprint(f"[blue]#{wi.id}: {wi.url}[/blue]")


@workitem_app.command("view")
def workitem_view(
    work_item_id: Annotated[int, typer.Argument(metavar="ID", help="Work item ID")],
    web: Annotated[bool, typer.Option("--web", help="Print the work item URL")] = False,
    repo: RepoOpt = None,
) -> None:
    """Show full details for a work item."""
    client = get_client(repo)
    with api_errors():
        wi = client.get_work_item(work_item_id)

    table = Table(title=f"#{wi.id} {escape(wi.title)}")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Type", escape(wi.work_item_type))
    table.add_row("State", styled_state(wi.state))
    table.add_row("Assignee", escape(wi.assigned_to.display_name) if wi.assigned_to else "[dim]Unassigned[/dim]")
    if wi.priority:
        style = _PRIORITY_STYLE.get(wi.priority, "white")
        table.add_row("Priority", f"[{style}]{wi.priority}[/{style}]")
    if wi.area_path:
        table.add_row("Area", escape(wi.area_path))
    if wi.iteration_path:
        table.add_row("Iteration", escape(wi.iteration_path))
    if wi.tags:
        table.add_row("Tags", " ".join(f"[cyan]#{escape(tag)}[/cyan]" for tag in wi.tags))

    created_by = wi.created_by.display_name if wi.created_by else "Unknown"
    table.add_row("Created", f"{format_age(wi.created_date)} by {escape(created_by)}")
    if wi.changed_date != wi.created_date:
        table.add_row("Updated", format_age(wi.changed_date))
    table.add_row("Description", escape(strip_html(wi.description)) or "[dim]No description provided[/dim]")
    if wi.url:
        table.add_row("URL", wi.url)

    rprint(table)
    if web and wi.url:
        rprint(f"[blue]{wi.url}[/blue]")


@workitem_app.command("create")
def workitem_create(
    title: Annotated[str | None, typer.Option("--title", "-t", help="Work item title")] = None,
    work_item_type: Annotated[str | None, typer.Option("--type", "-T", help="Work item type")] = None,
    body: Annotated[str | None, typer.Option("--body", "-b", help="Description")] = None,
    assignee: Annotated[str | None, typer.Option("--assignee", "-a", help="Assign to user (@me for you)")] = None,
    priority: Annotated[
        int | None, typer.Option("--priority", "-p", min=1, max=4, help="Priority 1-4 (1=highest)")
    ] = None,
    label: Annotated[str | None, typer.Option("--label", "-l", help="Labels (comma-separated)")] = None,
    state: Annotated[str | None, typer.Option("--state", "-s", help="Initial state")] = None,
    area: Annotated[str | None, typer.Option("--area", help="Area path")] = None,
    iteration: Annotated[str | None, typer.Option("--iteration", help="Iteration path")] = None,
    repo: RepoOpt = None,
) -> None:
    """Create a new work item."""
    client = get_client(repo)
    if not work_item_type:
        with api_errors():
            types = client.get_work_item_types()
        if types:
            rprint(f"[dim]Available types: {escape(', '.join(types))}[/dim]")
        default_type = "Task" if "Task" in types or not types else types[0]
        work_item_type = typer.prompt("Work item type", default=default_type).strip()
    title = title or typer.prompt("Title").strip()
    if not title:
        rprint("[red]Title is required.[/red]")
        raise typer.Exit(1)

    with api_errors(), err_console.status("Creating work item..."):
        created = client.create_work_item(
            work_item_type,
            title,
            description=body,
            assigned_to=_identity_value(assignee) if assignee else None,
            area_path=area,
            iteration_path=iteration,
            tags=split_labels(label),
            priority=priority,
            state=state,
        )

    rprint(f"[green]✓[/green] [bold]#{created.id}[/bold] {escape(created.title)}")
    if created.url:
        rprint(f"  {created.url}")


@workitem_app.command("edit")
def workitem_edit(
    work_item_id: Annotated[int, typer.Argument(metavar="ID", help="Work item ID")],
    title: Annotated[str | None, typer.Option("--title", "-t", help="New title")] = None,
    body: Annotated[str | None, typer.Option("--body", "-b", help="New description")] = None,
    assignee: Annotated[
        str | None, typer.Option("--assignee", "-a", help='New assignee (@me for you, "" to unassign)')
    ] = None,
    state: Annotated[str | None, typer.Option("--state", "-s", help="New state")] = None,
    priority: Annotated[int | None, typer.Option("--priority", "-p", min=1, max=4, help="Priority 1-4")] = None,
    label: Annotated[str | None, typer.Option("--label", "-l", help="Replace labels (comma-separated)")] = None,
    add_label: Annotated[str | None, typer.Option("--add-label", help="Add labels (comma-separated)")] = None,
    remove_label: Annotated[str | None, typer.Option("--remove-label", help="Remove labels (comma-separated)")] = None,
    area: Annotated[str | None, typer.Option("--area", help="New area path")] = None,
    iteration: Annotated[str | None, typer.Option("--iteration", help="New iteration path")] = None,
    repo: RepoOpt = None,
) -> None:
    """Edit fields of a work item."""
    operations = []
    if title:
        operations.append(patch_op("replace", fields.TITLE, title))
    if body is not None:
        operations.append(patch_op("replace", fields.DESCRIPTION, body))
    if assignee is not None:
        if assignee == "":
            operations.append(patch_op("remove", fields.ASSIGNED_TO))
        else:
            operations.append(patch_op("replace", fields.ASSIGNED_TO, _identity_value(assignee)))
    if state:
        operations.append(patch_op("replace", fields.STATE, state))
    if priority is not None:
        operations.append(patch_op("replace", fields.PRIORITY, priority))
    if area:
        operations.append(patch_op("replace", fields.AREA_PATH, area))
    if iteration:
        operations.append(patch_op("replace", fields.ITERATION_PATH, iteration))

    label_change = label is not None or add_label or remove_label
    if not operations and not label_change:
        rprint("[red]Nothing to change. Pass at least one of --title, --body, --assignee, --state, ...[/red]")
        raise typer.Exit(1)

    client = get_client(repo)
    with api_errors():
        if label is not None:
            operations.append(patch_op("replace", fields.TAGS, ";".join(split_labels(label))))
        elif add_label or remove_label:
            current = client.get_work_item(work_item_id)
            tags = list(current.tags)
            tags += [t for t in split_labels(add_label) if t not in tags]
            removed = split_labels(remove_label)
            tags = [t for t in tags if t not in removed]
            operations.append(patch_op("replace", fields.TAGS, ";".join(tags)))

        updated = client.update_work_item(work_item_id, operations)

    _print_work_item_result(updated, "updated")


@workitem_app.command("close")
def workitem_close(
    work_item_id: Annotated[int, typer.Argument(metavar="ID", help="Work item ID")],
    comment: Annotated[str | None, typer.Option("--comment", "-c", help="Closing comment")] = None,
    repo: RepoOpt = None,
) -> None:
    """Close a work item."""
    operations = [patch_op("replace", fields.STATE, "Closed")]
    if comment:
        operations.append(patch_op("add", fields.HISTORY, comment))

    client = get_client(repo)
    with api_errors():
        updated = client.update_work_item(work_item_id, operations)
    _print_work_item_result(updated, "closed")


@workitem_app.command("reopen")
def workitem_reopen(
    work_item_id: Annotated[int, typer.Argument(metavar="ID", help="Work item ID")],
    comment: Annotated[str | None, typer.Option("--comment", "-c", help="Reopening comment")] = None,
    repo: RepoOpt = None,
) -> None:
    """Reopen a closed work item."""
    operations = [patch_op("replace", fields.STATE, "Active")]
    if comment:
        operations.append(patch_op("add", fields.HISTORY, comment))

    client = get_client(repo)
    with api_errors():
        updated = client.update_work_item(work_item_id, operations)
    _print_work_item_result(updated, "reopened")


@workitem_app.command("comment")
def workitem_comment(
    work_item_id: Annotated[int, typer.Argument(metavar="ID", help="Work item ID")],
    body: Annotated[str | None, typer.Option("--body", "-b", help="Comment text; omit to list comments")] = None,
    repo: RepoOpt = None,
) -> None:
    """Add a comment to a work item, or list its comments."""
    client = get_client(repo)

    if body:
        with api_errors():
            created = client.add_comment(work_item_id, body)
        rprint(f"[green]✓[/green] Comment #{created.id} added by {escape(created.created_by.display_name)}")
        return

    with api_errors():
        comments = client.get_comments(work_item_id)
    if not comments:
        rprint("[yellow]No comments found.[/yellow]")
        return
    for c in comments:
        stamp = c.created_date.strftime("%Y-%m-%d %H:%M")
        rprint(f"[cyan]#{c.id}[/cyan] {escape(c.created_by.display_name)} - {stamp}")
        rprint(escape(strip_html(c.text)))
        rprint("")


# ---------------------------------------------------------------------------
# pr
# ---------------------------------------------------------------------------


@pr_app.command("list")
def pr_list(
    repository: RepositoryOpt,
    status: Annotated[str, typer.Option("--status", "-s", help="active, completed, abandoned or all")] = "active",
    repo: RepoOpt = None,
) -> None:
    """List pull requests."""
    client = get_client(repo)
    with api_errors():
        prs = client.list_pull_requests(repository, status=status)

    if not prs:
        rprint("[yellow]No pull requests found.[/yellow]")
        return

    table = Table(title="Pull Requests")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Created By")
    for pr in prs:
        table.add_row(
            str(pr.pull_request_id), escape(truncate(pr.title, 60)), pr.status, escape(pr.created_by.display_name)
        )
    rprint(table)


@pr_app.command("view")
def pr_view(
    pull_request_id: Annotated[int, typer.Argument(metavar="ID", help="Pull request ID")],
    repository: RepositoryOpt,
    repo: RepoOpt = None,
) -> None:
    """Show a pull request."""
    client = get_client(repo)
    with api_errors():
        pr = client.get_pull_request(repository, pull_request_id)

    rprint(f"[cyan]#{pr.pull_request_id} {escape(pr.title)}[/cyan]")
    rprint(f"Status: {pr.status}")
    rprint(f"Created By: {escape(pr.created_by.display_name)}")
    rprint(f"Source: {pr.source_ref_name}")
    rprint(f"Target: {pr.target_ref_name}")
    if pr.description:
        rprint("")
        rprint(escape(pr.description))
    rprint("")
    rprint(f"[dim]{pr.url}[/dim]")


@pr_app.command("create")
def pr_create(
    repository: RepositoryOpt,
    source: Annotated[str, typer.Option("--source", "-s", help="Source branch")],
    target: Annotated[str, typer.Option("--target", "-t", help="Target branch")],
    title: Annotated[str, typer.Option("--title", "-T", help="Pull request title")],
    description: Annotated[str | None, typer.Option("--description", "-d", help="Description")] = None,
    repo: RepoOpt = None,
) -> None:
    """Create a pull request."""
    client = get_client(repo)
    with api_errors():
        pr = client.create_pull_request(repository, source, target, title, description)
    rprint(f"[green]✓[/green] Pull request [bold]#{pr.pull_request_id}[/bold] created")
    rprint(f"  {pr.url}")


# ---------------------------------------------------------------------------
# team
# ---------------------------------------------------------------------------


@team_app.command("status")
def team_status(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    detail: Annotated[bool, typer.Option("--detail", help="Show every unassigned work item")] = False,
    stale_days: Annotated[int | None, typer.Option("--stale-days", min=0, help="Override stale threshold")] = None,
    repo: RepoOpt = None,
) -> None:
    """Show the team health report."""
    config = load_team_config()
    if config is None:
        rprint(_TEAM_NOT_CONFIGURED)
        return

    client = get_client(repo)
    status = nullcontext() if json_output else err_console.status("Fetching team work items...")
    with api_errors(), status:
        items = client.get_team_work_items(
            config.team.members, exclude_completed=True, completed_states=config.states.completed
        )
    if not json_output:
        err_console.print(f"[green]✓[/green] Fetched {len(items)} work items")

    thresholds = config.thresholds
    if stale_days is not None:
        thresholds = thresholds.model_copy(update={"stale_days": stale_days})

    report = HealthAnalyzer(thresholds, config.states).analyze_team_health(items, config.team)

    if json_output:
        typer.echo(format_json_report(report))
    else:
        render_report(report, console, detail=detail)


@team_app.command("init")
def team_init() -> None:
    """Interactive team configuration setup."""
    rprint("[bold cyan]Team Configuration Setup[/bold cyan]")
    rprint("")

    team_name = typer.prompt("Team name", default="My Team").strip()

    members: list[TeamMember] = []
    while True:
        name = typer.prompt("Member name", default="").strip()
        email = typer.prompt("Member email", default="").strip()
        if name and email:
            members.append(TeamMember(name=name, email=email))
            rprint(f"[green]  ✓ Added {escape(name)}[/green]")
        if not typer.confirm("Add another member?", default=len(members) < 3):
            break

    if not members:
        rprint("[yellow]No members added. Aborting.[/yellow]")
        return

    thresholds = default_thresholds()
    if typer.confirm("Customize alert thresholds?", default=False):
        thresholds = HealthThresholds(
            stale_days=typer.prompt("Days before item is considered stale", default=thresholds.stale_days, type=int),
            stuck_in_state_days=thresholds.stuck_in_state_days,
            max_items_per_person=typer.prompt(
                "Max items per person (workload alert)", default=thresholds.max_items_per_person, type=int
            ),
            min_items_per_person=thresholds.min_items_per_person,
            high_priority_days=typer.prompt(
                "Days before high priority item is at risk", default=thresholds.high_priority_days, type=int
            ),
        )

    config = TeamHealthConfig(
        team=TeamConfig(name=team_name, members=members),
        thresholds=thresholds,
        states=default_state_categories(),
    )
    save_team_config(config)

    rprint("")
    rprint("[green]✓ Team configuration saved![/green]")
    rprint(f"[dim]  Team: {escape(team_name)}[/dim]")
    rprint(f"[dim]  Members: {len(members)}[/dim]")
    rprint('[dim]Run "ado team status" to see your team health report.[/dim]')


def _with_members(config: TeamHealthConfig, members: list[TeamMember]) -> TeamHealthConfig:
    return config.model_copy(update={"team": config.team.model_copy(update={"members": members})})


@team_app.command("add")
def team_add(
    email: Annotated[str, typer.Argument(help="Member email")],
    name: Annotated[str | None, typer.Option("--name", "-n", help="Display name")] = None,
) -> None:
    """Add a team member."""
    config = load_team_config()
    if config is None:
        rprint(_TEAM_NOT_CONFIGURED)
        return

    if any(m.email.lower() == email.lower() for m in config.team.members):
        rprint(f"[yellow]Member {escape(email)} already exists.[/yellow]")
        return

    name = name or typer.prompt("Member name", default=email.split("@")[0]).strip()
    save_team_config(_with_members(config, [*config.team.members, TeamMember(name=name, email=email)]))
    rprint(f"[green]✓[/green] Added {escape(name)} ({escape(email)}) to the team.")


@team_app.command("remove")
def team_remove(email: Annotated[str, typer.Argument(help="Member email")]) -> None:
    """Remove a team member."""
    config = load_team_config()
    if config is None:
        rprint(_TEAM_NOT_CONFIGURED)
        return

    removed = [m for m in config.team.members if m.email.lower() == email.lower()]
    if not removed:
        rprint(f"[yellow]Member {escape(email)} not found.[/yellow]")
        return

    kept = [m for m in config.team.members if m.email.lower() != email.lower()]
    save_team_config(_with_members(config, kept))
    rprint(f"[green]✓[/green] Removed {escape(removed[0].name)} ({escape(removed[0].email)}) from the team.")


@team_app.command("list")
def team_list() -> None:
    """List team members."""
    config = load_team_config()
    if config is None:
        rprint(_TEAM_NOT_CONFIGURED)
        return

    table = Table(title=escape(config.team.name))
    table.add_column("Name", style="bold")
    table.add_column("Email")
    for member in config.team.members:
        table.add_row(escape(member.name), escape(member.email))

    rprint(table)
    rprint(f"[dim]Total: {len(config.team.members)} members[/dim]")


def _threshold_key(key: str) -> str | None:
    """Accept both snake_case and camelCase threshold names."""
    for name, info in HealthThresholds.model_fields.items():
        if key in (name, info.alias or to_camel(name)):
            return name
    return None


@team_app.command("config")
def team_config(
    set_value: Annotated[str | None, typer.Option("--set", help="Set a threshold, e.g. staleDays=5")] = None,
) -> None:
    """View or update team configuration."""
    config = load_team_config()
    if config is None:
        rprint(_TEAM_NOT_CONFIGURED)
        return

    if set_value:
        key, sep, raw = set_value.partition("=")
        if not sep or not key.strip():
            rprint("[red]Invalid format. Use --set key=value[/red]")
            raise typer.Exit(1)
        name = _threshold_key(key.strip())
        if name is None:
            available = ", ".join(info.alias or to_camel(n) for n, info in HealthThresholds.model_fields.items())
            rprint(f"[red]Unknown threshold: {escape(key)}[/red]")
            rprint(f"[dim]Available: {available}[/dim]")
            raise typer.Exit(1)
        try:
            thresholds = HealthThresholds.model_validate({**config.thresholds.model_dump(), name: raw.strip()})
        except ValidationError as exc:
            rprint(f"[red]Invalid value for {escape(key)}: {escape(raw)} (must be a non-negative integer)[/red]")
            raise typer.Exit(1) from exc
        save_team_config(config.model_copy(update={"thresholds": thresholds}))
        rprint(f"[green]✓[/green] Set {escape(key)} to {getattr(thresholds, name)}")
        return

    rprint("[bold]Team Configuration[/bold]")
    rprint(f"[cyan]Team:[/cyan] {escape(config.team.name)}")
    rprint(f"[cyan]Members:[/cyan] {len(config.team.members)}")
    rprint("")

    table = Table(title="Thresholds")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for name, info in HealthThresholds.model_fields.items():
        table.add_row(info.alias or to_camel(name), str(getattr(config.thresholds, name)))
    rprint(table)

    rprint("[bold]State Categories:[/bold]")
    rprint(f"  active: {escape(', '.join(config.states.active))}")
    rprint(f"  blocked: {escape(', '.join(config.states.blocked))}")
    rprint(f"  completed: {escape(', '.join(config.states.completed))}")
    rprint("")
    rprint("[dim]Use --set key=value to update thresholds[/dim]")
