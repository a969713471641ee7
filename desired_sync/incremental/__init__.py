"""
Estado persistente de triggers y detección de cambios.
"""
from .change_detector import ChangeDetector, SyncStatus
from .lock import HandleLock, StateFileLock, force_unlock, held_locks
from .state_manager import StateManager

__all__ = [
    "ChangeDetector",
    "SyncStatus",
    "HandleLock",
    "StateFileLock",
    "force_unlock",
    "held_locks",
    "StateManager",
]
