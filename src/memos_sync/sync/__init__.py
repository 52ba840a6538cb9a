"""
Sync Module Package

Provides synchronization from a Memos server into a local folder.

Structure:
    - normalizer.py: remote snapshot -> normalized target files
    - reconciler.py: normalized files + local state -> ReconciliationPlan
    - executor.py: PlanExecutor - applies a plan through the filesystem
    - runner.py: SyncRunner - one full sync run
    - scheduler.py: SyncScheduler - periodic runs

Usage:
    from memos_sync.sync import SyncRunner, SyncScheduler
"""

from memos_sync.sync.normalizer import normalize_snapshot, get_file_name, render_note
from memos_sync.sync.reconciler import LocalState, reconcile
from memos_sync.sync.executor import PlanExecutor
from memos_sync.sync.runner import SyncRunner, SyncOutcome
from memos_sync.sync.scheduler import SyncScheduler

__all__ = ['normalize_snapshot', 'get_file_name', 'render_note', 'LocalState', 'reconcile',
           'PlanExecutor', 'SyncRunner', 'SyncOutcome', 'SyncScheduler']
