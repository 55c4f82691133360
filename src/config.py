"""
Configuration module for the GitHub Team reconciler.

Loads configuration from environment variables. Provider configs (named
credential sources) are supplied as a JSON object in PROVIDER_CONFIGS.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_PROVIDER_CONFIG = "default"
DEFAULT_TOKEN_ENV = "GITHUB_TOKEN"


@dataclass
class GitHubConfig:
    """GitHub REST API configuration."""

    api_base_url: str = DEFAULT_API_BASE_URL
    timeout: int = 30  # seconds, per request

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            api_base_url=os.getenv("GITHUB_API_URL", DEFAULT_API_BASE_URL),
            timeout=int(os.getenv("GITHUB_TIMEOUT", "30")),
        )


@dataclass
class ReconcilerConfig:
    """Single-pass reconciler configuration."""

    requeue_after: int = 60  # seconds suggested to the scheduler after a failure

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(requeue_after=int(os.getenv("REQUEUE_AFTER", "60")))


@dataclass
class ProviderConfig:
    """
    A named source of GitHub credentials.

    source is one of the credential sources understood by
    credentials.resolve_token ('Environment', 'Filesystem'). Other values
    are kept so that resolution can report them.
    """

    name: str = DEFAULT_PROVIDER_CONFIG
    source: str = "Environment"
    env: str = DEFAULT_TOKEN_ENV
    path: Optional[str] = None
    api_base_url: Optional[str] = None  # overrides GitHubConfig.api_base_url

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]):
        """Build a provider config from its JSON representation."""
        if not isinstance(data, dict):
            raise ValueError(f"Provider config '{name}' must be a JSON object")
        return cls(
            name=name,
            source=data.get("source", "Environment"),
            env=data.get("env", DEFAULT_TOKEN_ENV),
            path=data.get("path"),
            api_base_url=data.get("api_base_url"),
        )


@dataclass
class Config:
    """Main configuration object."""

    github: GitHubConfig
    reconciler: ReconcilerConfig
    provider_configs: Dict[str, ProviderConfig] = field(default_factory=dict)

    @classmethod
    def from_env(cls):
        """Load all configuration from environment variables."""
        provider_configs = {DEFAULT_PROVIDER_CONFIG: ProviderConfig()}

        raw = os.getenv("PROVIDER_CONFIGS")
        if raw:
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ValueError(f"PROVIDER_CONFIGS is not valid JSON: {e}") from e
            if not isinstance(parsed, dict):
                raise ValueError("PROVIDER_CONFIGS must be a JSON object")
            for name, data in parsed.items():
                provider_configs[name] = ProviderConfig.from_dict(name, data)

        return cls(
            github=GitHubConfig.from_env(),
            reconciler=ReconcilerConfig.from_env(),
            provider_configs=provider_configs,
        )

    @classmethod
    def default(cls):
        """Return default configuration."""
        return cls(
            github=GitHubConfig(),
            reconciler=ReconcilerConfig(),
            provider_configs={DEFAULT_PROVIDER_CONFIG: ProviderConfig()},
        )

    def get_provider_config(self, name: str) -> Optional[ProviderConfig]:
        """Get a provider config by name."""
        return self.provider_configs.get(name)


# Global config instance
config: Optional[Config] = None


def load_config() -> Config:
    """Load configuration (singleton pattern)."""
    global config
    if config is None:
        config = Config.from_env()
    return config


def get_config() -> Config:
    """Get the current configuration."""
    if config is None:
        return load_config()
    return config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global config
    config = None
