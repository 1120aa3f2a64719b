"""Hot-reload engine.

- Change detection from file modification times
- Per-file records of the symbols and sub-features each load introduced
- Transactional loads with rollback on failure
- Reload passes that cascade into dependent applications
"""

from hotload.reload.reloader import Reloader, ReloadReport
from hotload.reload.safety import ExclusionPolicy, ExclusionRules
from hotload.reload.storage import FileLoadRecord, PendingTransaction, SymbolRegistry
from hotload.reload.transaction import LoadTransaction
from hotload.reload.watcher import ChangeDetector, FileChange

__all__ = [
    "ChangeDetector",
    "ExclusionPolicy",
    "ExclusionRules",
    "FileChange",
    "FileLoadRecord",
    "LoadTransaction",
    "PendingTransaction",
    "ReloadReport",
    "Reloader",
    "SymbolRegistry",
]
