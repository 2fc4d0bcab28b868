"""Request coordination for calls to the catalog API."""

from animebrowse.pipeline.lifecycle_tracker import LifecycleTracker
from animebrowse.pipeline.request_coordinator import (
    RequestCoordinator,
    classify_failure,
    summarize_result,
)

__all__ = [
    "LifecycleTracker",
    "RequestCoordinator",
    "classify_failure",
    "summarize_result",
]
