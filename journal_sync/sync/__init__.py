"""
Offline-to-remote reconciliation.

Replays pending local mutations against the remote entry API and
refreshes the local cache from server listings.
"""

from .reconciler import ReconcileResult, SyncConfig, SyncReconciler, SyncState, SyncStatus

__all__ = [
    "SyncReconciler",
    "SyncConfig",
    "SyncState",
    "SyncStatus",
    "ReconcileResult",
]
