"""Pytest configuration and fixtures."""

from typing import Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from config import Config, GitHubConfig, ProviderConfig, ReconcilerConfig
from github_client import NewTeam, RemoteTeam, TeamNotFoundError
from resources import Team, TeamParameters


class FakeGitHub:
    """
    In-memory stand-in for GitHubClient.

    Teams are keyed by (org, slug). Every call is recorded in `calls`.
    Setting `fail_with` makes the next call raise that exception.
    """

    def __init__(self):
        self.teams: Dict[Tuple[str, str], RemoteTeam] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self.fail_with: Optional[BaseException] = None
        self._next_id = 1

    def _record(self, name: str, *args):
        self.calls.append((name, args))
        if self.fail_with is not None:
            error, self.fail_with = self.fail_with, None
            raise error

    def add_team(self, org: str, slug: str, description=None, privacy=None):
        team = RemoteTeam(
            id=self._next_id,
            node_id=f"T_node{self._next_id}",
            name=slug,
            slug=slug,
            description=description,
            privacy=privacy,
        )
        self._next_id += 1
        self.teams[(org, slug)] = team
        return team

    async def get_team_by_slug(self, org: str, slug: str) -> RemoteTeam:
        self._record("get", org, slug)
        if (org, slug) not in self.teams:
            raise TeamNotFoundError(404, "Not Found")
        return self.teams[(org, slug)]

    async def create_team(self, org: str, team: NewTeam) -> RemoteTeam:
        self._record("create", org, team)
        return self.add_team(org, team.name, team.description, team.privacy)

    async def edit_team_by_slug(self, org: str, slug: str, team: NewTeam) -> RemoteTeam:
        self._record("edit", org, slug, team)
        if (org, slug) not in self.teams:
            raise TeamNotFoundError(404, "Not Found")
        remote = self.teams[(org, slug)]
        if team.description is not None:
            remote.description = team.description
        if team.privacy is not None:
            remote.privacy = team.privacy
        return remote

    async def delete_team_by_slug(self, org: str, slug: str) -> None:
        self._record("delete", org, slug)
        if (org, slug) not in self.teams:
            raise TeamNotFoundError(404, "Not Found")
        del self.teams[(org, slug)]


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def team():
    """The 'platform' team of the 'acme' organization."""
    return Team(
        name="platform",
        for_provider=TeamParameters(
            org="acme",
            description="Platform team",
            privacy="secret",
        ),
    )


@pytest.fixture
def team_manifest():
    """Sample Team manifest for testing."""
    return {
        "apiVersion": "org.github.teams/v1alpha1",
        "kind": "Team",
        "metadata": {"name": "platform"},
        "spec": {
            "forProvider": {
                "org": "acme",
                "description": "Platform team",
                "privacy": "secret",
            },
            "providerConfigRef": {"name": "default"},
        },
    }


@pytest.fixture
def test_config():
    """Configuration with a default and a file-based provider config."""
    return Config(
        github=GitHubConfig(api_base_url="https://github.example.com/api/v3"),
        reconciler=ReconcilerConfig(requeue_after=30),
        provider_configs={
            "default": ProviderConfig(),
            "from-file": ProviderConfig(
                name="from-file", source="Filesystem", path="/nonexistent/token"
            ),
        },
    )


@pytest.fixture
def github_response():
    """
    Patch aiohttp so GitHubClient calls answer with a canned raw response.

    Call the fixture with (status, raw_bytes) before making requests.
    """
    with patch("github_client.aiohttp.ClientSession") as mock_session_cls:

        def respond(status: int, raw: bytes = b""):
            mock_resp = AsyncMock()
            mock_resp.status = status
            mock_resp.read = AsyncMock(return_value=raw)

            mock_session = AsyncMock()
            mock_session.request = MagicMock(
                return_value=AsyncMock(
                    __aenter__=AsyncMock(return_value=mock_resp),
                    __aexit__=AsyncMock(return_value=False),
                )
            )
            mock_session_cls.return_value = AsyncMock(
                __aenter__=AsyncMock(return_value=mock_session),
                __aexit__=AsyncMock(return_value=False),
            )
            return mock_session

        yield respond
