"""Resilient request pipeline: backoff, classification, execution, retries."""

from .backoff import compute_backoff
from .classifier import classify_response, classify_transport_error, kind_for_status
from .executor import Outcome, RequestDescriptor, RequestExecutor
from .metadata import ResponseMetadata, parse_response_metadata
from .retry import RetryOrchestrator, RetryState

__all__ = [
    "Outcome",
    "RequestDescriptor",
    "RequestExecutor",
    "ResponseMetadata",
    "RetryOrchestrator",
    "RetryState",
    "classify_response",
    "classify_transport_error",
    "compute_backoff",
    "kind_for_status",
    "parse_response_metadata",
]
