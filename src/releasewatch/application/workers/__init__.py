"""Background workers (periodic triggers)."""

from .expiry_sweep_worker import ExpirySweepWorker
from .periodic_worker import PeriodicWorker
from .release_scan_worker import ReleaseScanWorker

__all__ = ["ExpirySweepWorker", "PeriodicWorker", "ReleaseScanWorker"]
