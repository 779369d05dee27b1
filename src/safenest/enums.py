from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Type, TypeVar


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class GroomingRisk(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskLevel(str, Enum):
    """Overall risk level of a combined analysis."""

    SAFE = "safe"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskCategory(str, Enum):
    BULLYING = "bullying"
    GROOMING = "grooming"
    UNSAFE = "unsafe"
    SELF_HARM = "self_harm"
    OTHER = "other"


class AnalysisType(str, Enum):
    BULLYING = "bullying"
    GROOMING = "grooming"
    UNSAFE = "unsafe"
    EMOTIONS = "emotions"


class EmotionTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"


class Audience(str, Enum):
    """Target audience for action plans."""

    CHILD = "child"
    PARENT = "parent"
    EDUCATOR = "educator"
    PLATFORM = "platform"


class IncidentStatus(str, Enum):
    NEW = "new"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"


class MessageRole(str, Enum):
    """Role of a message sender in grooming detection."""

    ADULT = "adult"
    CHILD = "child"
    UNKNOWN = "unknown"


class WebhookEventType(str, Enum):
    INCIDENT_CRITICAL = "incident.critical"
    INCIDENT_HIGH = "incident.high"
    GROOMING_DETECTED = "grooming.detected"
    SELF_HARM_DETECTED = "self_harm.detected"
    BULLYING_SEVERE = "bullying.severe"


# Wire tables list every member explicitly.
_TO_WIRE: Dict[Type[Enum], Dict[Enum, str]] = {
    Severity: {
        Severity.LOW: "low",
        Severity.MEDIUM: "medium",
        Severity.HIGH: "high",
        Severity.CRITICAL: "critical",
    },
    GroomingRisk: {
        GroomingRisk.NONE: "none",
        GroomingRisk.LOW: "low",
        GroomingRisk.MEDIUM: "medium",
        GroomingRisk.HIGH: "high",
        GroomingRisk.CRITICAL: "critical",
    },
    RiskLevel: {
        RiskLevel.SAFE: "safe",
        RiskLevel.LOW: "low",
        RiskLevel.MEDIUM: "medium",
        RiskLevel.HIGH: "high",
        RiskLevel.CRITICAL: "critical",
    },
    Audience: {
        Audience.CHILD: "child",
        Audience.PARENT: "parent",
        Audience.EDUCATOR: "educator",
        Audience.PLATFORM: "platform",
    },
    MessageRole: {
        MessageRole.ADULT: "adult",
        MessageRole.CHILD: "child",
        MessageRole.UNKNOWN: "unknown",
    },
    WebhookEventType: {
        WebhookEventType.INCIDENT_CRITICAL: "incident.critical",
        WebhookEventType.INCIDENT_HIGH: "incident.high",
        WebhookEventType.GROOMING_DETECTED: "grooming.detected",
        WebhookEventType.SELF_HARM_DETECTED: "self_harm.detected",
        WebhookEventType.BULLYING_SEVERE: "bullying.severe",
    },
}

_FROM_WIRE: Dict[Type[Enum], Dict[str, Enum]] = {
    Severity: {
        "low": Severity.LOW,
        "medium": Severity.MEDIUM,
        "high": Severity.HIGH,
        "critical": Severity.CRITICAL,
    },
    GroomingRisk: {
        "none": GroomingRisk.NONE,
        "low": GroomingRisk.LOW,
        "medium": GroomingRisk.MEDIUM,
        "high": GroomingRisk.HIGH,
        "critical": GroomingRisk.CRITICAL,
    },
    RiskLevel: {
        "safe": RiskLevel.SAFE,
        "low": RiskLevel.LOW,
        "medium": RiskLevel.MEDIUM,
        "moderate": RiskLevel.MEDIUM,
        "high": RiskLevel.HIGH,
        "critical": RiskLevel.CRITICAL,
    },
    EmotionTrend: {
        "improving": EmotionTrend.IMPROVING,
        "stable": EmotionTrend.STABLE,
        "worsening": EmotionTrend.WORSENING,
    },
}

_WIRE_FALLBACK: Dict[Type[Enum], str] = {
    Severity: "low",
    GroomingRisk: "none",
    RiskLevel: "safe",
    Audience: "parent",
    MessageRole: "unknown",
    WebhookEventType: "incident.critical",
}

_PARSE_FALLBACK: Dict[Type[Enum], Enum] = {
    Severity: Severity.LOW,
    GroomingRisk: GroomingRisk.NONE,
    RiskLevel: RiskLevel.SAFE,
    EmotionTrend: EmotionTrend.STABLE,
}

E = TypeVar("E", bound=Enum)


def to_api_string(value: Enum) -> str:
    """Wire string for an enum member; unknown members map to the type's fallback."""
    enum_type = type(value)
    table = _TO_WIRE.get(enum_type)
    if table is None:
        raise TypeError(f"{enum_type.__name__} has no wire mapping")
    return table.get(value, _WIRE_FALLBACK[enum_type])


def _parse(enum_type: Type[E], value: Optional[str]) -> E:
    if value is None:
        return _PARSE_FALLBACK[enum_type]  # type: ignore[return-value]
    return _FROM_WIRE[enum_type].get(  # type: ignore[return-value]
        value.strip().lower(), _PARSE_FALLBACK[enum_type]
    )


def parse_severity(value: Optional[str]) -> Severity:
    return _parse(Severity, value)


def parse_grooming_risk(value: Optional[str]) -> GroomingRisk:
    return _parse(GroomingRisk, value)


def parse_risk_level(value: Optional[str]) -> RiskLevel:
    return _parse(RiskLevel, value)


def parse_emotion_trend(value: Optional[str]) -> EmotionTrend:
    return _parse(EmotionTrend, value)
