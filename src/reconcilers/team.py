"""
Team Reconciler - Keeps GitHub organization teams in line with Team resources.

The team slug is the Team's external name and the organization comes from
spec.forProvider.org. Only description and privacy are managed; fields a
Team leaves unset are never treated as drift.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from config import Config, get_config
from credentials import (
    CredentialsError,
    ProviderConfigUsageTracker,
    use_provider_config,
)
from github_client import (
    GitHubAPIError,
    GitHubClient,
    NewTeam,
    RemoteTeam,
    TeamNotFoundError,
)
from reconcilers.base import (
    CredentialResolutionFailed,
    ExternalClient,
    ExternalConnector,
    ExternalCreation,
    ExternalObservation,
    ExternalUpdate,
    ManagedReconciler,
    RemoteCallFailed,
    RemoteLookupFailed,
    WrongResourceKind,
)
from resources import ManagedResource, Team

logger = logging.getLogger(__name__)

ERR_NOT_TEAM = "managed resource is not a Team custom resource"
ERR_CREATE_SERVICE = "failed to create client service"
ERR_GET_TEAM = "cannot get team"
ERR_CREATE_TEAM = "cannot create team"
ERR_UPDATE_TEAM = "cannot update team"
ERR_DELETE_TEAM = "cannot delete team"

# Failures of a single remote call. asyncio.CancelledError is not listed,
# so cancellation propagates unchanged.
REMOTE_ERRORS = (GitHubAPIError, aiohttp.ClientError, asyncio.TimeoutError)


def _as_team(resource: ManagedResource) -> Team:
    """Check the resource variant and the fields every call relies on."""
    if not isinstance(resource, Team):
        raise WrongResourceKind(ERR_NOT_TEAM)
    if not resource.get_external_name():
        raise ValueError(f"Team {resource.name} has no external name")
    if not resource.for_provider.org:
        raise ValueError(f"Team {resource.name} has no spec.forProvider.org")
    return resource


def _new_team(team: Team) -> NewTeam:
    return NewTeam(
        name=team.get_external_name(),
        description=team.for_provider.description,
        privacy=team.for_provider.privacy,
    )


def is_up_to_date(team: Team, remote: RemoteTeam) -> bool:
    """
    Compare the managed fields of a Team with the remote team.

    A field is compared only when the Team sets it.
    """
    params = team.for_provider
    if params.description is not None and remote.description != params.description:
        return False
    if params.privacy is not None and remote.privacy != params.privacy:
        return False
    return True


class TeamConnector(ExternalConnector):
    """
    Produces a TeamExternal when its connect method is called.

    Tracks that the Team uses its provider config, then resolves that
    provider config's credentials into a GitHub client.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        usage: Optional[ProviderConfigUsageTracker] = None,
    ):
        self.config = config or get_config()
        self.usage = usage or ProviderConfigUsageTracker()

    async def connect(self, resource: ManagedResource) -> "TeamExternal":
        if not isinstance(resource, Team):
            raise WrongResourceKind(ERR_NOT_TEAM)

        try:
            service = await use_provider_config(resource, self.config, self.usage)
        except CredentialsError as e:
            raise CredentialResolutionFailed(f"{ERR_CREATE_SERVICE}: {e}") from e

        return TeamExternal(service)

    def release(self, resource: ManagedResource) -> None:
        self.usage.release(resource)


class TeamExternal(ExternalClient):
    """External client for GitHub teams."""

    def __init__(self, service: GitHubClient):
        self.service = service

    async def observe(self, resource: ManagedResource) -> ExternalObservation:
        team = _as_team(resource)
        org = team.for_provider.org
        slug = team.get_external_name()

        try:
            remote = await self.service.get_team_by_slug(org, slug)
        except TeamNotFoundError:
            logger.debug(f"Team {org}/{slug} does not exist")
            return ExternalObservation(resource_exists=False)
        except REMOTE_ERRORS as e:
            raise RemoteLookupFailed(f"{ERR_GET_TEAM}: {e}") from e

        up_to_date = is_up_to_date(team, remote)
        logger.debug(f"Observed team {org}/{slug}: up_to_date={up_to_date}")

        return ExternalObservation(
            resource_exists=True,
            resource_up_to_date=up_to_date,
            remote_id=remote.node_id,
        )

    async def create(self, resource: ManagedResource) -> ExternalCreation:
        team = _as_team(resource)
        org = team.for_provider.org

        logger.info(f"Creating team {org}/{team.get_external_name()}")

        try:
            await self.service.create_team(org, _new_team(team))
        except REMOTE_ERRORS as e:
            raise RemoteCallFailed(f"{ERR_CREATE_TEAM}: {e}") from e

        return ExternalCreation()

    async def update(self, resource: ManagedResource) -> ExternalUpdate:
        team = _as_team(resource)
        org = team.for_provider.org
        slug = team.get_external_name()

        logger.info(f"Updating team {org}/{slug}")

        try:
            await self.service.edit_team_by_slug(org, slug, _new_team(team))
        except REMOTE_ERRORS as e:
            raise RemoteCallFailed(f"{ERR_UPDATE_TEAM}: {e}") from e

        return ExternalUpdate()

    async def delete(self, resource: ManagedResource) -> None:
        team = _as_team(resource)
        org = team.for_provider.org
        slug = team.get_external_name()

        logger.info(f"Deleting team {org}/{slug}")

        try:
            await self.service.delete_team_by_slug(org, slug)
        except TeamNotFoundError:
            logger.info(f"Team {org}/{slug} is already gone")
        except REMOTE_ERRORS as e:
            raise RemoteCallFailed(f"{ERR_DELETE_TEAM}: {e}") from e


def setup_team(
    config: Optional[Config] = None,
    usage: Optional[ProviderConfigUsageTracker] = None,
) -> ManagedReconciler:
    """Build the reconciler for Team managed resources."""
    config = config or get_config()
    return ManagedReconciler(
        kind="Team",
        connector=TeamConnector(config=config, usage=usage),
        requeue_after=config.reconciler.requeue_after,
    )
