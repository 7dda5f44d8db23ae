"""
Core services for the application.

This package contains the side-effect resolver, the aggregation engine, the
persistent store and the client-side synchronization controller.
"""

from .aggregation import active_medications, aggregate_side_effects
from .result import Result
from .side_effects import SideEffectResolver, SideEffectSource
from .store import PatientStore
from .sync import Debouncer, SyncClient, SyncStatus

__all__ = [
    "Result",
    "SideEffectSource",
    "SideEffectResolver",
    "active_medications",
    "aggregate_side_effects",
    "PatientStore",
    "Debouncer",
    "SyncClient",
    "SyncStatus",
]
