"""Azure DevOps REST API (7.1) client."""

import base64
import logging
from collections.abc import Sequence
from urllib.parse import quote

import httpx

from adocli.models import Identity, PullRequest, TeamMember, WorkItem, WorkItemComment
from adocli.settings import AdoSettings
from adocli.wiql import build_team_query

logger = logging.getLogger(__name__)

BASE_URL = "https://dev.azure.com"
API_VERSION = "7.1"
COMMENTS_API_VERSION = "7.1-preview.4"
BATCH_SIZE = 200  # max ids per workitems GET
TEAM_QUERY_LIMIT = 500

# Work item field reference names
TITLE = "System.Title"
STATE = "System.State"
ASSIGNED_TO = "System.AssignedTo"
DESCRIPTION = "System.Description"
AREA_PATH = "System.AreaPath"
ITERATION_PATH = "System.IterationPath"
TAGS = "System.Tags"
HISTORY = "System.History"
PRIORITY = "Microsoft.VSTS.Common.Priority"


def patch_op(op: str, field: str, value: object = None) -> dict:
    """One JSON-patch operation against a work item field."""
    operation: dict = {"op": op, "path": f"/fields/{field}"}
    if op != "remove":
        operation["value"] = value
    return operation


def _identity(raw: dict | str | None) -> Identity | None:
    if not raw:
        return None
    if isinstance(raw, str):
        return Identity(display_name=raw)
    return Identity(display_name=raw.get("displayName", ""), unique_name=raw.get("uniqueName", ""))


def _roster_emails(members: Sequence[TeamMember]) -> list[str]:
    """Primary emails plus email-shaped aliases, deduplicated case-insensitively in roster order."""
    seen: set[str] = set()
    emails = []
    for member in members:
        for address in [member.email, *(a for a in member.aliases if "@" in a)]:
            if address.lower() not in seen:
                seen.add(address.lower())
                emails.append(address)
    return emails


def work_item_from_node(node: dict, web_base: str = "") -> WorkItem:
    """Map a REST work item (fields keyed by reference name) onto WorkItem.

    The web URL comes from _links when the API includes it, otherwise it is built from web_base.
    """
    fields = node.get("fields", {})
    tags = fields.get(TAGS) or ""
    url = node.get("_links", {}).get("html", {}).get("href", "")
    if not url and web_base:
        url = f"{web_base}/_workitems/edit/{node['id']}"
    return WorkItem(
        id=node["id"],
        rev=node.get("rev", 0),
        title=fields.get(TITLE, ""),
        work_item_type=fields.get("System.WorkItemType", ""),
        state=fields.get(STATE, ""),
        assigned_to=_identity(fields.get(ASSIGNED_TO)),
        created_by=_identity(fields.get("System.CreatedBy")),
        created_date=fields["System.CreatedDate"],
        changed_date=fields["System.ChangedDate"],
        priority=fields.get(PRIORITY),
        area_path=fields.get(AREA_PATH, ""),
        iteration_path=fields.get(ITERATION_PATH, ""),
        description=fields.get(DESCRIPTION),
        tags=[t.strip() for t in tags.split(";") if t.strip()],
        url=url,
    )


class AdoClient:
    def __init__(self, settings: AdoSettings) -> None:
        if not settings.organization or not settings.project:
            raise RuntimeError("Organization/project not configured. Use -R organization/project.")
        if not settings.token:
            raise RuntimeError("No Azure DevOps token. Run: ado auth login")
        self._organization = settings.organization
        self._project = settings.project
        encoded = base64.b64encode(f":{settings.token.get_secret_value()}".encode()).decode()
        self._headers = {"Authorization": f"Basic {encoded}", "Accept": "application/json"}

    @property
    def org_url(self) -> str:
        return f"{BASE_URL}/{quote(self._organization, safe='')}"

    @property
    def project_url(self) -> str:
        return f"{self.org_url}/{quote(self._project, safe='')}"

    def _request(
        self,
        method: str,
        url: str,
        params: dict | None = None,
        json: object = None,
        content_type: str | None = None,
    ) -> dict:
        headers = dict(self._headers)
        if content_type:
            headers["Content-Type"] = content_type
        logger.debug("%s %s", method, url)
        response = httpx.request(
            method,
            url,
            headers=headers,
            params={"api-version": API_VERSION, **(params or {})},
            json=json,
            timeout=30,
        )
        if response.status_code == 401:
            raise RuntimeError("Azure DevOps API returned 401. Run ado auth login to update your token.")
        response.raise_for_status()
        return response.json()

    def test_connection(self) -> bool:
        """True if the token can list projects in the organization."""
        try:
            response = httpx.get(
                f"{self.org_url}/_apis/projects",
                headers=self._headers,
                params={"api-version": API_VERSION},
                timeout=30,
            )
        except httpx.HTTPError as exc:
            logger.debug("Connection test failed: %s", exc)
            return False
        logger.debug("Connection test returned %d", response.status_code)
        # an invalid PAT gets 203 and a sign-in page, not 401
        return response.status_code == 200

    # -----------------------------------------------------------------------
    # Work items
    # -----------------------------------------------------------------------

    def get_work_item_types(self) -> list[str]:
        data = self._request("GET", f"{self.project_url}/_apis/wit/workitemtypes")
        return [t["name"] for t in data.get("value", []) if not t.get("isDisabled")]

    def query_work_items(self, wiql: str, limit: int = 30) -> list[WorkItem]:
        result = self._request(
            "POST",
            f"{self.project_url}/_apis/wit/wiql",
            params={"$top": str(limit)},
            json={"query": wiql},
        )
        ids = [ref["id"] for ref in result.get("workItems", [])]
        if not ids:
            return []

        items: list[WorkItem] = []
        for start in range(0, len(ids), BATCH_SIZE):
            batch = ids[start : start + BATCH_SIZE]
            data = self._request(
                "GET",
                f"{self.project_url}/_apis/wit/workitems",
                params={"ids": ",".join(str(i) for i in batch), "$expand": "fields"},
            )
            items += [work_item_from_node(node, self.project_url) for node in data.get("value", [])]
        return items

    def get_work_item(self, work_item_id: int) -> WorkItem:
        node = self._request(
            "GET", f"{self.project_url}/_apis/wit/workitems/{work_item_id}", params={"$expand": "fields"}
        )
        return work_item_from_node(node, self.project_url)

    def create_work_item(
        self,
        work_item_type: str,
        title: str,
        description: str | None = None,
        assigned_to: str | None = None,
        area_path: str | None = None,
        iteration_path: str | None = None,
        tags: Sequence[str] = (),
        priority: int | None = None,
        state: str | None = None,
    ) -> WorkItem:
        operations = [patch_op("add", TITLE, title)]
        optional = {
            DESCRIPTION: description,
            ASSIGNED_TO: assigned_to,
            AREA_PATH: area_path,
            ITERATION_PATH: iteration_path,
            TAGS: ";".join(tags) if tags else None,
            PRIORITY: priority,
            STATE: state,
        }
        operations += [patch_op("add", field, value) for field, value in optional.items() if value]

        node = self._request(
            "POST",
            f"{self.project_url}/_apis/wit/workitems/${quote(work_item_type, safe='')}",
            json=operations,
            content_type="application/json-patch+json",
        )
        return work_item_from_node(node, self.project_url)

    def update_work_item(self, work_item_id: int, operations: list[dict]) -> WorkItem:
        node = self._request(
            "PATCH",
            f"{self.project_url}/_apis/wit/workitems/{work_item_id}",
            json=operations,
            content_type="application/json-patch+json",
        )
        return work_item_from_node(node, self.project_url)

    def get_comments(self, work_item_id: int) -> list[WorkItemComment]:
        data = self._request(
            "GET",
            f"{self.project_url}/_apis/wit/workItems/{work_item_id}/comments",
            params={"api-version": COMMENTS_API_VERSION},
        )
        return [WorkItemComment.model_validate(c) for c in data.get("comments", [])]

    def add_comment(self, work_item_id: int, text: str) -> WorkItemComment:
        data = self._request(
            "POST",
            f"{self.project_url}/_apis/wit/workItems/{work_item_id}/comments",
            params={"api-version": COMMENTS_API_VERSION},
            json={"text": text},
        )
        return WorkItemComment.model_validate(data)

    def get_team_work_items(
        self,
        members: Sequence[TeamMember],
        exclude_completed: bool = True,
        completed_states: Sequence[str] = (),
    ) -> list[WorkItem]:
        """Work items assigned to the roster (plus unassigned ones), for the health report."""
        if not members:
            return []
        wiql = build_team_query(
            self._project,
            _roster_emails(members),
            excluded_states=completed_states if exclude_completed else (),
        )
        return self.query_work_items(wiql, limit=TEAM_QUERY_LIMIT)

    # -----------------------------------------------------------------------
    # Pull requests
    # -----------------------------------------------------------------------

    def _repo_url(self, repository: str) -> str:
        return f"{self.project_url}/_apis/git/repositories/{quote(repository, safe='')}"

    def _pull_request_from_node(self, node: dict, repository: str) -> PullRequest:
        web = node.get("_links", {}).get("web", {}).get("href")
        fallback = f"{self.project_url}/_git/{quote(repository, safe='')}/pullrequest/{node['pullRequestId']}"
        return PullRequest.model_validate({**node, "url": web or fallback})

    def list_pull_requests(self, repository: str, status: str = "active") -> list[PullRequest]:
        data = self._request(
            "GET", f"{self._repo_url(repository)}/pullrequests", params={"searchCriteria.status": status}
        )
        return [self._pull_request_from_node(node, repository) for node in data.get("value", [])]

    def get_pull_request(self, repository: str, pull_request_id: int) -> PullRequest:
        node = self._request("GET", f"{self._repo_url(repository)}/pullrequests/{pull_request_id}")
        return self._pull_request_from_node(node, repository)

    def create_pull_request(
        self,
        repository: str,
        source: str,
        target: str,
        title: str,
        description: str | None = None,
    ) -> PullRequest:
        body: dict = {
            "sourceRefName": source if source.startswith("refs/") else f"refs/heads/{source}",
            "targetRefName": target if target.startswith("refs/") else f"refs/heads/{target}",
            "title": title,
        }
        if description:
            body["description"] = description
        node = self._request("POST", f"{self._repo_url(repository)}/pullrequests", json=body)
        return self._pull_request_from_node(node, repository)
