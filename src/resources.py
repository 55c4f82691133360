"""
Managed resource types.

A managed resource is the desired-state record handed to a reconciler. Team
is the only variant with a reconciler in this package; other kinds are kept
as plain ManagedResource instances so reconcilers can reject them.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from config import DEFAULT_PROVIDER_CONFIG
from validation import validate_manifest

EXTERNAL_NAME_ANNOTATION = "github.teams/external-name"


@dataclass
class ManagedResource:
    """Base desired-state record, identified by kind and name."""

    name: str
    kind: str = ""
    annotations: Dict[str, str] = field(default_factory=dict)
    provider_config_ref: str = DEFAULT_PROVIDER_CONFIG

    def get_external_name(self) -> str:
        """Name of the external resource, defaulting to the resource name."""
        return self.annotations.get(EXTERNAL_NAME_ANNOTATION) or self.name

    def set_external_name(self, external_name: str) -> None:
        self.annotations[EXTERNAL_NAME_ANNOTATION] = external_name

    def apply_observation(self, observation) -> None:
        """Record observed external state. Kinds without status ignore it."""


@dataclass
class TeamParameters:
    """Desired team settings. None means 'do not manage this field'."""

    org: str
    description: Optional[str] = None
    privacy: Optional[str] = None


@dataclass
class TeamObservation:
    """Observed team state written back by the caller."""

    node_id: str = ""


@dataclass
class Team(ManagedResource):
    """A GitHub organization team."""

    for_provider: TeamParameters = field(default_factory=lambda: TeamParameters(org=""))
    at_provider: TeamObservation = field(default_factory=TeamObservation)

    def __post_init__(self):
        self.kind = "Team"

    def apply_observation(self, observation) -> None:
        """
        Record the remote identifier from an ExternalObservation.

        Observations of an absent team leave the record untouched.
        """
        if observation.resource_exists and observation.remote_id:
            self.at_provider.node_id = observation.remote_id

    @classmethod
    def from_manifest(cls, manifest: Dict[str, Any]) -> "Team":
        """
        Build a Team from a validated manifest document.

        Raises:
            ValueError: If the manifest does not match the Team schema.
        """
        is_valid, error = validate_manifest(manifest)
        if not is_valid:
            raise ValueError(f"Invalid Team manifest: {error}")

        metadata = manifest["metadata"]
        spec = manifest["spec"]
        params = spec["forProvider"]

        return cls(
            name=metadata["name"],
            annotations=copy.deepcopy(metadata.get("annotations", {})),
            provider_config_ref=spec.get("providerConfigRef", {}).get(
                "name", DEFAULT_PROVIDER_CONFIG
            ),
            for_provider=TeamParameters(
                org=params["org"],
                description=params.get("description"),
                privacy=params.get("privacy"),
            ),
        )


def resource_from_manifest(manifest: Dict[str, Any]) -> ManagedResource:
    """
    Build the managed resource described by a manifest.

    Team manifests become Team instances; any other kind becomes a generic
    ManagedResource.
    """
    if not isinstance(manifest, dict):
        raise ValueError("Manifest must be a mapping")

    kind = manifest.get("kind")
    if kind == "Team":
        return Team.from_manifest(manifest)

    metadata = manifest.get("metadata") or {}
    name = metadata.get("name")
    if not kind or not name:
        raise ValueError("Manifest must set kind and metadata.name")
    return ManagedResource(
        name=name,
        kind=kind,
        annotations=dict(metadata.get("annotations") or {}),
    )
