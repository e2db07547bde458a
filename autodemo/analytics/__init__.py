"""Analytics recording and delivery."""

from autodemo.analytics.recorder import AnalyticsRecorder
from autodemo.analytics.transport import AnalyticsTransport, HttpAnalyticsTransport

__all__ = ["AnalyticsRecorder", "AnalyticsTransport", "HttpAnalyticsTransport"]
