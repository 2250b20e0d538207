"""Shared test fixtures."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

import adocli.settings as settings_module
from adocli.models import Identity, TeamConfig, TeamMember, WorkItem

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)

ALICE = TeamMember(name="Alice Smith", email="alice@example.com")
BOB = TeamMember(name="Bob Jones", email="bob@example.com", aliases=["bjones@contoso.com", "Robert Jones"])


def make_item(
    id: int = 1,
    title: str = "Fix login redirect",
    state: str = "Active",
    assignee: TeamMember | Identity | None = None,
    priority: int | None = 3,
    changed_days_ago: float = 0,
    created_days_ago: float = 30,
    work_item_type: str = "Task",
) -> WorkItem:
    if isinstance(assignee, TeamMember):
        assignee = Identity(display_name=assignee.name, unique_name=assignee.email)
    return WorkItem(
        id=id,
        title=title,
        work_item_type=work_item_type,
        state=state,
        assigned_to=assignee,
        created_date=NOW - timedelta(days=created_days_ago),
        changed_date=NOW - timedelta(days=changed_days_ago),
        priority=priority,
        url=f"https://dev.azure.com/contoso/Web/_workitems/edit/{id}",
    )


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Point both config files at tmp_path and clear the lru_cache around each test."""
    monkeypatch.setattr(settings_module, "CONFIG_PATH", tmp_path / "config.toml")
    monkeypatch.setattr(settings_module, "TEAM_CONFIG_PATH", tmp_path / "team.toml")
    for var in ("ADO_ORGANIZATION", "ADO_PROJECT", "ADO_TOKEN"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)  # no stray .env
    settings_module._load_toml.cache_clear()
    yield
    settings_module._load_toml.cache_clear()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def item_factory() -> Callable[..., WorkItem]:
    return make_item


@pytest.fixture
def team() -> TeamConfig:
    return TeamConfig(name="Web Team", members=[ALICE, BOB])


@pytest.fixture
def alice() -> TeamMember:
    return ALICE


@pytest.fixture
def bob() -> TeamMember:
    return BOB
