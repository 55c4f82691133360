"""
GitHub Teams Client - Minimal async client for the GitHub Teams REST API.

Covers the four calls the Team reconciler needs: lookup, create, edit and
delete of an organization team addressed by its slug.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from config import DEFAULT_API_BASE_URL

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Raised when the GitHub API answers with an unexpected status."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"GitHub API returned {status}: {message}")


class TeamNotFoundError(GitHubAPIError):
    """Raised when the addressed team does not exist (HTTP 404)."""


@dataclass
class RemoteTeam:
    """A team as it currently exists on GitHub."""

    id: int
    node_id: Optional[str]
    name: str
    slug: str
    description: Optional[str] = None
    privacy: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RemoteTeam":
        return cls(
            id=int(data["id"]),
            node_id=data.get("node_id"),
            name=str(data.get("name", "")),
            slug=str(data.get("slug", "")),
            description=data.get("description"),
            privacy=data.get("privacy"),
        )


@dataclass
class NewTeam:
    """Request body for creating or editing a team."""

    name: str
    description: Optional[str] = None
    privacy: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """
        Serialize to a JSON body.

        Unset optional fields are omitted; GitHub leaves omitted fields
        unchanged on edit and applies its defaults on create.
        """
        payload: Dict[str, Any] = {"name": self.name}
        if self.description is not None:
            payload["description"] = self.description
        if self.privacy is not None:
            payload["privacy"] = self.privacy
        return payload


class GitHubClient:
    """
    Authenticated handle to the GitHub Teams API.

    Holds no per-resource state. Each call opens its own session, so a
    client can be shared freely between concurrent reconciliations.
    """

    def __init__(
        self,
        token: str,
        api_base_url: str = DEFAULT_API_BASE_URL,
        timeout: int = 30,
    ):
        self._token = token
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"GitHubClient(api_base_url={self.api_base_url!r})"

    def _get_headers(self) -> Dict[str, str]:
        """Get HTTP headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _team_url(self, org: str, slug: str) -> str:
        return f"{self.api_base_url}/orgs/{org}/teams/{slug}"

    async def _request(
        self,
        method: str,
        url: str,
        expected: int,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Perform a single request and decode the response.

        The body is decoded leniently; undecodable bytes never mask the
        status of the response.

        Raises:
            TeamNotFoundError: On HTTP 404.
            GitHubAPIError: On any other status than the expected one, or
                when a successful response does not carry a JSON object.
            aiohttp.ClientError: On transport failures.
            asyncio.TimeoutError: When the total timeout elapses.
        """
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(
                method, url, headers=self._get_headers(), json=payload
            ) as response:
                status = response.status
                text = (await response.read()).decode("utf-8", errors="replace")

        if status == expected:
            if status == 204:
                return None
            try:
                data = json.loads(text)
            except ValueError as e:
                raise GitHubAPIError(status, f"invalid JSON in response: {e}") from e
            if not isinstance(data, dict):
                raise GitHubAPIError(status, "response body is not a JSON object")
            return data

        message = self._error_message(text)
        logger.debug(f"{method} {url} failed: {status} - {message}")
        if status == 404:
            raise TeamNotFoundError(status, message)
        raise GitHubAPIError(status, message)

    @staticmethod
    def _error_message(text: str) -> str:
        try:
            body = json.loads(text)
        except ValueError:
            return text
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return text

    @staticmethod
    def _parse_team(status: int, data: Dict[str, Any]) -> RemoteTeam:
        try:
            return RemoteTeam.from_json(data)
        except (KeyError, TypeError, ValueError) as e:
            raise GitHubAPIError(status, f"malformed team in response: {e!r}") from e

    async def get_team_by_slug(self, org: str, slug: str) -> RemoteTeam:
        """Fetch a team by organization and slug."""
        data = await self._request("GET", self._team_url(org, slug), expected=200)
        return self._parse_team(200, data)

    async def create_team(self, org: str, team: NewTeam) -> RemoteTeam:
        """Create a team in an organization."""
        url = f"{self.api_base_url}/orgs/{org}/teams"
        data = await self._request("POST", url, expected=201, payload=team.to_payload())
        return self._parse_team(201, data)

    async def edit_team_by_slug(self, org: str, slug: str, team: NewTeam) -> RemoteTeam:
        """Edit a team addressed by organization and slug."""
        data = await self._request(
            "PATCH", self._team_url(org, slug), expected=200, payload=team.to_payload()
        )
        return self._parse_team(200, data)

    async def delete_team_by_slug(self, org: str, slug: str) -> None:
        """Delete a team addressed by organization and slug."""
        await self._request("DELETE", self._team_url(org, slug), expected=204)
