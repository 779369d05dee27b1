from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import (
    Audience,
    EmotionTrend,
    GroomingRisk,
    MessageRole,
    RiskLevel,
    Severity,
    parse_emotion_trend,
    parse_grooming_risk,
    parse_risk_level,
    parse_severity,
)

# ---------------------------------------------------------------------------
# Context & messages
# ---------------------------------------------------------------------------


@dataclass
class AnalysisContext:
    language: Optional[str] = None
    age_group: Optional[str] = None  # e.g. "7-10", "11-13", "14-17"
    relationship: Optional[str] = None
    platform: Optional[str] = None

    def to_payload(self) -> Dict[str, str]:
        payload = {
            "language": self.language,
            "age_group": self.age_group,
            "relationship": self.relationship,
            "platform": self.platform,
        }
        return {key: value for key, value in payload.items() if value is not None}


@dataclass
class GroomingMessage:
    role: MessageRole
    content: str


@dataclass
class EmotionMessage:
    sender: str
    content: str


@dataclass
class ReportMessage:
    sender: str
    content: str


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass
class DetectBullyingInput:
    content: str
    context: Optional[AnalysisContext] = None
    external_id: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class DetectGroomingInput:
    messages: List[GroomingMessage] = field(default_factory=list)
    child_age: Optional[int] = None
    context: Optional[AnalysisContext] = None
    external_id: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class DetectUnsafeInput:
    content: str
    context: Optional[AnalysisContext] = None
    external_id: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class AnalyzeInput:
    content: str
    context: Optional[AnalysisContext] = None
    # Checks to run; None means bullying + unsafe.
    include: Optional[List[str]] = None
    external_id: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class AnalyzeEmotionsInput:
    content: Optional[str] = None
    messages: Optional[List[EmotionMessage]] = None
    context: Optional[AnalysisContext] = None
    external_id: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class GetActionPlanInput:
    situation: str
    child_age: Optional[int] = None
    audience: Audience = Audience.PARENT
    severity: Optional[Severity] = None
    external_id: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class GenerateReportInput:
    messages: List[ReportMessage] = field(default_factory=list)
    child_age: Optional[int] = None
    incident_type: Optional[str] = None
    external_id: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


# ---------------------------------------------------------------------------
# Results (deserialized from snake_case JSON)
# ---------------------------------------------------------------------------


class _ApiResult(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class _TrackedResult(_ApiResult):
    external_id: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class BullyingResult(_TrackedResult):
    is_bullying: bool = False
    bullying_type: List[str] = Field(default_factory=list)
    confidence: float = 0.0
    severity: str = "low"
    rationale: str = ""
    recommended_action: str = ""
    risk_score: float = 0.0

    @property
    def parsed_severity(self) -> Severity:
        return parse_severity(self.severity)


class GroomingResult(_TrackedResult):
    grooming_risk: str = "none"
    flags: List[str] = Field(default_factory=list)
    confidence: float = 0.0
    rationale: str = ""
    risk_score: float = 0.0
    recommended_action: str = ""

    @property
    def parsed_grooming_risk(self) -> GroomingRisk:
        return parse_grooming_risk(self.grooming_risk)


class UnsafeResult(_TrackedResult):
    unsafe: bool = False
    categories: List[str] = Field(default_factory=list)
    severity: str = "low"
    confidence: float = 0.0
    risk_score: float = 0.0
    rationale: str = ""
    recommended_action: str = ""

    @property
    def parsed_severity(self) -> Severity:
        return parse_severity(self.severity)


class AnalyzeResult(_TrackedResult):
    """Composite verdict of a combined analysis."""

    risk_level: RiskLevel = RiskLevel.SAFE
    risk_score: float = 0.0
    summary: str = ""
    bullying: Optional[BullyingResult] = None
    unsafe: Optional[UnsafeResult] = None
    recommended_action: str = "none"


class EmotionsResult(_TrackedResult):
    dominant_emotions: List[str] = Field(default_factory=list)
    emotion_scores: Optional[Dict[str, float]] = None
    trend: str = "stable"
    summary: str = ""
    recommended_followup: str = ""

    @property
    def parsed_trend(self) -> EmotionTrend:
        return parse_emotion_trend(self.trend)


class ActionPlanResult(_TrackedResult):
    audience: str = ""
    steps: List[str] = Field(default_factory=list)
    tone: str = ""
    reading_level: Optional[str] = Field(default=None, alias="approx_reading_level")


class ReportResult(_TrackedResult):
    summary: str = ""
    risk_level: str = "low"
    categories: List[str] = Field(default_factory=list)
    recommended_next_steps: List[str] = Field(default_factory=list)

    @property
    def parsed_risk_level(self) -> RiskLevel:
        return parse_risk_level(self.risk_level)


class AccountDeletionResult(_ApiResult):
    message: str = ""
    deleted_count: int = 0


class AccountExportResult(_ApiResult):
    # The export endpoint keeps camelCase keys.
    user_id: str = Field(default="", alias="userId")
    exported_at: str = Field(default="", alias="exportedAt")
    data: Optional[Dict[str, Any]] = None


# ---------------------------------------------------------------------------
# Usage & rate limit snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Usage:
    """Monthly quota as reported by the server."""

    limit: int
    used: int
    remaining: int


@dataclass(frozen=True)
class RateLimitInfo:
    """Short-window request allowance as reported by the server."""

    limit: int
    remaining: int
    reset: Optional[int] = None  # epoch seconds
