"""autodemo: guided product-tour playback engine.

Sequences narrated steps, waits for each to complete, and reports
lifecycle events to a best-effort analytics sink.
"""

__version__ = "0.1.0"
