"""
Reconciler Base - Interfaces and result types for external-resource reconcilers.

A reconciler is split in two roles. An ExternalConnector turns a managed
resource into an ExternalClient bound to an authenticated API handle. The
ExternalClient observes the external resource and creates, updates or
deletes it so that it reflects the managed resource's desired state.

ManagedReconciler drives exactly one pass of that protocol. Retries,
backoff and status persistence belong to whoever calls it.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from resources import ManagedResource

logger = logging.getLogger(__name__)


class ReconcilerError(Exception):
    """Base class for errors raised by connectors and external clients."""

    retryable = True

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class WrongResourceKind(ReconcilerError):
    """Raised when a reconciler receives a resource of a kind it does not handle."""

    retryable = False


class CredentialResolutionFailed(ReconcilerError):
    """Raised when a connector cannot build an authenticated client."""


class RemoteLookupFailed(ReconcilerError):
    """Raised when observing fails for a reason other than absence."""


class RemoteCallFailed(ReconcilerError):
    """Raised when a create, update or delete call fails."""


@dataclass
class ExternalObservation:
    """Result of observing an external resource."""

    # False tells the caller to (re)create the external resource.
    resource_exists: bool = False
    # Only meaningful when resource_exists is True.
    resource_up_to_date: bool = False
    # Identifier of the external resource, for the caller to record.
    remote_id: Optional[str] = None


@dataclass
class ExternalCreation:
    """Result of creating an external resource."""


@dataclass
class ExternalUpdate:
    """Result of updating an external resource."""


class ExternalClient(ABC):
    """
    Observes, then either creates, updates, or deletes an external
    resource to ensure it reflects the managed resource's desired state.

    Instances are built per reconciliation and hold nothing but the API
    handle they were connected with.
    """

    @abstractmethod
    async def observe(self, resource: ManagedResource) -> ExternalObservation:
        """Report whether the external resource exists and is up to date."""
        pass

    @abstractmethod
    async def create(self, resource: ManagedResource) -> ExternalCreation:
        """Create the external resource. Called only when it does not exist."""
        pass

    @abstractmethod
    async def update(self, resource: ManagedResource) -> ExternalUpdate:
        """Update the external resource. Called only when it is stale."""
        pass

    @abstractmethod
    async def delete(self, resource: ManagedResource) -> None:
        """Delete the external resource."""
        pass


class ExternalConnector(ABC):
    """Produces an ExternalClient for a managed resource."""

    @abstractmethod
    async def connect(self, resource: ManagedResource) -> ExternalClient:
        """
        Connect to the external API on behalf of a managed resource.

        Args:
            resource: The managed resource being reconciled.

        Returns:
            An ExternalClient bound to an authenticated API handle.
        """
        pass

    def release(self, resource: ManagedResource) -> None:
        """Drop any state kept for a resource whose external side is gone."""


class ReconcileAction(Enum):
    """What a reconciliation pass did to the external resource."""

    NONE = "none"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass
class ReconcileResult:
    """Result from a single reconciliation pass."""

    success: bool = False
    message: str = ""
    action: ReconcileAction = ReconcileAction.NONE
    observation: Optional[ExternalObservation] = None
    requeue_after: Optional[int] = None


def controller_name(kind: str) -> str:
    """Name of the reconciler for a managed resource kind."""
    return f"managed/{kind.lower()}"


class ControllerLogAdapter(logging.LoggerAdapter):
    """Prefixes log messages with the controller name."""

    def process(self, msg, kwargs):
        return f"[{self.extra['controller']}] {msg}", kwargs


class ManagedReconciler:
    """
    Runs one reconciliation pass for managed resources of a single kind.

    Observe, then create when absent, update when stale, or do nothing.
    When the resource is being deleted, delete instead. Errors raised by
    the connector or client are reported in the result; cancellation is
    not intercepted.
    """

    def __init__(
        self,
        kind: str,
        connector: ExternalConnector,
        requeue_after: int = 60,
        log: Optional[logging.LoggerAdapter] = None,
    ):
        self.kind = kind
        self.connector = connector
        self.requeue_after = requeue_after
        self.log = log or ControllerLogAdapter(
            logger, {"controller": controller_name(kind)}
        )

    @property
    def name(self) -> str:
        return controller_name(self.kind)

    @property
    def resource_types(self) -> List[str]:
        return [self.kind]

    async def reconcile(
        self, resource: ManagedResource, deleting: bool = False
    ) -> ReconcileResult:
        """
        Reconcile a single resource once.

        Args:
            resource: The managed resource. Its observed state is updated
                from the observation.
            deleting: Whether the resource's deletion lifecycle has begun.

        Returns:
            ReconcileResult describing what was done.
        """
        observation = None
        try:
            external = await self.connector.connect(resource)

            if deleting:
                await external.delete(resource)
                self.connector.release(resource)
                self.log.info(f"Deleted external resource for {resource.name}")
                return ReconcileResult(
                    success=True,
                    message="Successfully deleted external resource",
                    action=ReconcileAction.DELETED,
                )

            observation = await external.observe(resource)
            resource.apply_observation(observation)

            if not observation.resource_exists:
                await external.create(resource)
                self.log.info(f"Created external resource for {resource.name}")
                return ReconcileResult(
                    success=True,
                    message="Successfully requested creation of external resource",
                    action=ReconcileAction.CREATED,
                    observation=observation,
                )

            if not observation.resource_up_to_date:
                await external.update(resource)
                self.log.info(f"Updated external resource for {resource.name}")
                return ReconcileResult(
                    success=True,
                    message="Successfully requested update of external resource",
                    action=ReconcileAction.UPDATED,
                    observation=observation,
                )

            self.log.debug(f"External resource for {resource.name} is up to date")
            return ReconcileResult(
                success=True,
                message="External resource is up to date",
                observation=observation,
            )

        except ReconcilerError as e:
            self.log.warning(f"Reconciliation of {resource.name} failed: {e}")
            return ReconcileResult(
                success=False,
                message=str(e),
                observation=observation,
                requeue_after=self.requeue_after if e.retryable else None,
            )
