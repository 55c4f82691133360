"""
Reconcilers package.

Each reconciler pairs an ExternalConnector with an ExternalClient for one
managed resource kind.
"""

from reconcilers.base import (
    CredentialResolutionFailed,
    ExternalClient,
    ExternalConnector,
    ExternalCreation,
    ExternalObservation,
    ExternalUpdate,
    ManagedReconciler,
    ReconcileAction,
    ReconcileResult,
    ReconcilerError,
    RemoteCallFailed,
    RemoteLookupFailed,
    WrongResourceKind,
)

__all__ = [
    "CredentialResolutionFailed",
    "ExternalClient",
    "ExternalConnector",
    "ExternalCreation",
    "ExternalObservation",
    "ExternalUpdate",
    "ManagedReconciler",
    "ReconcileAction",
    "ReconcileResult",
    "ReconcilerError",
    "RemoteCallFailed",
    "RemoteLookupFailed",
    "WrongResourceKind",
]
