"""
Credentials - Provider config resolution and usage tracking.

Turns the provider config referenced by a managed resource into an
authenticated GitHubClient. No remote call is made here.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Set

from config import Config, ProviderConfig
from github_client import GitHubClient
from resources import ManagedResource

logger = logging.getLogger(__name__)


class CredentialsError(Exception):
    """Raised when a provider config cannot produce a usable token."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ProviderConfigUsageTracker:
    """
    Records which managed resources use which provider config.

    A provider config with recorded users should not be removed while
    those resources still exist.
    """

    def __init__(self):
        self._usages: Dict[str, Set[str]] = {}

    async def track(self, resource: ManagedResource) -> None:
        """Mark the resource's provider config as in use."""
        ref = resource.provider_config_ref
        if not ref:
            raise CredentialsError(
                f"{resource.kind} {resource.name} has no providerConfigRef"
            )

        users = self._usages.setdefault(ref, set())
        key = f"{resource.kind}/{resource.name}"
        if key not in users:
            users.add(key)
            logger.debug(f"Provider config {ref} is now used by {key}")

    def release(self, resource: ManagedResource) -> None:
        """Forget the usage recorded for a resource."""
        users = self._usages.get(resource.provider_config_ref)
        if users:
            users.discard(f"{resource.kind}/{resource.name}")

    def users_of(self, provider_config: str) -> Set[str]:
        return set(self._usages.get(provider_config, set()))


def resolve_token(provider_config: ProviderConfig) -> str:
    """
    Extract the GitHub token from a provider config's credentials source.

    Raises:
        CredentialsError: If the source is unsupported or yields no token.
    """
    source = provider_config.source

    if source == "Environment":
        token = os.getenv(provider_config.env, "").strip()
        if not token:
            raise CredentialsError(
                f"Environment variable {provider_config.env} is not set or empty"
            )
        return token

    if source == "Filesystem":
        if not provider_config.path:
            raise CredentialsError(
                f"Provider config {provider_config.name} has no credentials path"
            )
        try:
            token = Path(provider_config.path).read_text().strip()
        except OSError as e:
            raise CredentialsError(
                f"Cannot read credentials file {provider_config.path}: {e}"
            ) from e
        if not token:
            raise CredentialsError(f"Credentials file {provider_config.path} is empty")
        return token

    raise CredentialsError(f"Unsupported credentials source: {source}")


async def use_provider_config(
    resource: ManagedResource,
    config: Config,
    tracker: ProviderConfigUsageTracker,
) -> GitHubClient:
    """
    Build a GitHub client from the resource's provider config.

    Marks the provider config as in use, looks it up, and resolves its
    credentials.

    Raises:
        CredentialsError: If any of those steps fails.
    """
    await tracker.track(resource)

    provider_config = config.get_provider_config(resource.provider_config_ref)
    if provider_config is None:
        raise CredentialsError(
            f"Provider config {resource.provider_config_ref} not found"
        )

    token = resolve_token(provider_config)

    return GitHubClient(
        token=token,
        api_base_url=provider_config.api_base_url or config.github.api_base_url,
        timeout=config.github.timeout,
    )
