"""SafeNest Python SDK: async client for the SafeNest child-safety API."""

from .client import SafeNestClient
from .config import SafeNestConfig
from .constants import SDK_VERSION
from .enums import (
    AnalysisType,
    Audience,
    EmotionTrend,
    GroomingRisk,
    IncidentStatus,
    MessageRole,
    RiskCategory,
    RiskLevel,
    Severity,
    WebhookEventType,
)
from .errors import (
    AuthenticationError,
    ErrorInfo,
    ErrorKind,
    NetworkError,
    NotFoundError,
    RateLimitError,
    SafeNestError,
    ServerError,
    TierAccessError,
    TimeoutError,
    ValidationError,
)
from .logging import SafeNestLogger
from .models import (
    AccountDeletionResult,
    AccountExportResult,
    ActionPlanResult,
    AnalysisContext,
    AnalyzeEmotionsInput,
    AnalyzeInput,
    AnalyzeResult,
    BullyingResult,
    DetectBullyingInput,
    DetectGroomingInput,
    DetectUnsafeInput,
    EmotionMessage,
    EmotionsResult,
    GenerateReportInput,
    GetActionPlanInput,
    GroomingMessage,
    GroomingResult,
    RateLimitInfo,
    ReportMessage,
    ReportResult,
    UnsafeResult,
    Usage,
)

__version__ = SDK_VERSION

__all__ = [
    "AccountDeletionResult",
    "AccountExportResult",
    "ActionPlanResult",
    "AnalysisContext",
    "AnalysisType",
    "AnalyzeEmotionsInput",
    "AnalyzeInput",
    "AnalyzeResult",
    "Audience",
    "AuthenticationError",
    "BullyingResult",
    "DetectBullyingInput",
    "DetectGroomingInput",
    "DetectUnsafeInput",
    "EmotionMessage",
    "EmotionTrend",
    "EmotionsResult",
    "ErrorInfo",
    "ErrorKind",
    "GenerateReportInput",
    "GetActionPlanInput",
    "GroomingMessage",
    "GroomingResult",
    "GroomingRisk",
    "IncidentStatus",
    "MessageRole",
    "NetworkError",
    "NotFoundError",
    "RateLimitError",
    "RateLimitInfo",
    "ReportMessage",
    "ReportResult",
    "RiskCategory",
    "RiskLevel",
    "SafeNestClient",
    "SafeNestConfig",
    "SafeNestError",
    "SafeNestLogger",
    "ServerError",
    "Severity",
    "TierAccessError",
    "TimeoutError",
    "UnsafeResult",
    "Usage",
    "ValidationError",
    "WebhookEventType",
]
