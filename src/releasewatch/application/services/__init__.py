"""Application services."""

from .expiry_sweeper import ExpirySweeper, SweepResult
from .notification_dispatcher import DispatchResult, NotificationDispatcher
from .notification_settings_service import NotificationSettingsService
from .release_scanner import ReleaseScanner, ScanFilter, ScanResult, merge_status_reports

__all__ = [
    "DispatchResult",
    "ExpirySweeper",
    "NotificationDispatcher",
    "NotificationSettingsService",
    "ReleaseScanner",
    "ScanFilter",
    "ScanResult",
    "SweepResult",
    "merge_status_reports",
]
