"""Tests for adocli.wiql query builders."""

from adocli.wiql import build_list_query, build_team_query, order_by, quote


class TestQuote:
    def test_doubles_single_quotes(self) -> None:
        assert quote("O'Brien") == "'O''Brien'"


class TestOrderBy:
    def test_defaults(self) -> None:
        assert order_by() == "[System.CreatedDate] DESC"

    def test_unknown_sort_falls_back_to_created(self) -> None:
        assert order_by("bogus", "asc") == "[System.CreatedDate] ASC"

    def test_priority(self) -> None:
        assert order_by("priority", "ASC") == "[Microsoft.VSTS.Common.Priority] ASC"


class TestBuildListQuery:
    def test_project_only(self) -> None:
        wiql = build_list_query("Web")
        assert "WHERE [System.TeamProject] = 'Web' ORDER BY [System.CreatedDate] DESC" in wiql

    def test_me_macro(self) -> None:
        wiql = build_list_query("Web", assignee="@me", author="@ME")
        assert "[System.AssignedTo] = @Me" in wiql
        assert "[System.CreatedBy] = @Me" in wiql

    def test_filters(self) -> None:
        wiql = build_list_query(
            "Web",
            assignee="alice@example.com",
            state="Active",
            work_item_type="Bug",
            area="Web\\UI",
            iteration="Web\\Sprint 4",
            search="login",
            sort="updated",
            order="asc",
        )
        assert "[System.AssignedTo] = 'alice@example.com'" in wiql
        assert "[System.State] = 'Active'" in wiql
        assert "[System.WorkItemType] = 'Bug'" in wiql
        assert "[System.AreaPath] UNDER 'Web\\UI'" in wiql
        assert "[System.IterationPath] UNDER 'Web\\Sprint 4'" in wiql
        assert "([System.Title] CONTAINS 'login' OR [System.Description] CONTAINS 'login')" in wiql
        assert wiql.endswith("ORDER BY [System.ChangedDate] ASC")


class TestBuildTeamQuery:
    def test_members_and_unassigned(self) -> None:
        wiql = build_team_query("Web", ["alice@example.com", "bob@example.com"])
        assert "([System.AssignedTo] IN ('alice@example.com', 'bob@example.com') OR [System.AssignedTo] = '')" in wiql
        assert "NOT IN" not in wiql

    def test_excluded_states(self) -> None:
        wiql = build_team_query("Web", ["alice@example.com"], excluded_states=["Closed", "Done"])
        assert "[System.State] NOT IN ('Closed', 'Done')" in wiql
        assert wiql.endswith("ORDER BY [System.ChangedDate] DESC")
