"""WIQL (Work Item Query Language) builders."""

from collections.abc import Sequence

SORT_FIELDS = {
    "created": "[System.CreatedDate]",
    "updated": "[System.ChangedDate]",
    "priority": "[Microsoft.VSTS.Common.Priority]",
    "title": "[System.Title]",
}

_SELECT = (
    "SELECT [System.Id], [System.Title], [System.WorkItemType], [System.State], "
    "[System.AssignedTo], [System.CreatedDate] FROM WorkItems"
)


def quote(value: str) -> str:
    """Quote a WIQL string literal, doubling embedded single quotes."""
    return "'" + value.replace("'", "''") + "'"


def _identity(value: str) -> str:
    return "@Me" if value.lower() == "@me" else quote(value)


def order_by(sort: str = "created", order: str = "desc") -> str:
    direction = "ASC" if order.lower() == "asc" else "DESC"
    return f"{SORT_FIELDS.get(sort, SORT_FIELDS['created'])} {direction}"


def build_list_query(
    project: str,
    assignee: str | None = None,
    author: str | None = None,
    state: str | None = None,
    work_item_type: str | None = None,
    area: str | None = None,
    iteration: str | None = None,
    search: str | None = None,
    sort: str = "created",
    order: str = "desc",
) -> str:
    clauses = [f"[System.TeamProject] = {quote(project)}"]
    if assignee:
        clauses.append(f"[System.AssignedTo] = {_identity(assignee)}")
    if author:
        clauses.append(f"[System.CreatedBy] = {_identity(author)}")
    if state:
        clauses.append(f"[System.State] = {quote(state)}")
    if work_item_type:
        clauses.append(f"[System.WorkItemType] = {quote(work_item_type)}")
    if area:
        clauses.append(f"[System.AreaPath] UNDER {quote(area)}")
    if iteration:
        clauses.append(f"[System.IterationPath] UNDER {quote(iteration)}")
    if search:
        clauses.append(f"([System.Title] CONTAINS {quote(search)} OR [System.Description] CONTAINS {quote(search)})")
    return f"{_SELECT} WHERE {' AND '.join(clauses)} ORDER BY {order_by(sort, order)}"


def build_team_query(project: str, emails: Sequence[str], excluded_states: Sequence[str] = ()) -> str:
    """Items assigned to any of the given emails or to nobody, optionally skipping some states."""
    clauses = [
        f"[System.TeamProject] = {quote(project)}",
        f"([System.AssignedTo] IN ({', '.join(quote(e) for e in emails)}) OR [System.AssignedTo] = '')",
    ]
    if excluded_states:
        clauses.append(f"[System.State] NOT IN ({', '.join(quote(s) for s in excluded_states)})")
    return f"{_SELECT} WHERE {' AND '.join(clauses)} ORDER BY {order_by('updated')}"
