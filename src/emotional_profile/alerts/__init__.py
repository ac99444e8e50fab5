"""Alert aggregation and the notification-store record shape."""

from .aggregator import Alert, collect_alerts, merge_alerts, sort_by_severity

__all__ = ["Alert", "collect_alerts", "merge_alerts", "sort_by_severity"]
