"""
Service layer: word-list loading and results submission over HTTP.
"""

from .api import ExperimentApiClient
from .loader import CancellationToken, LoadingStatus, LoadState, SessionLoader, backoff_delay_ms
from .submitter import ResultsPayload, ResultsSubmitter, payload_from_dict

__all__ = [
    "CancellationToken",
    "ExperimentApiClient",
    "LoadState",
    "LoadingStatus",
    "ResultsPayload",
    "ResultsSubmitter",
    "SessionLoader",
    "backoff_delay_ms",
    "payload_from_dict",
]
