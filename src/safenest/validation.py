from __future__ import annotations

from typing import Optional

from .constants import Limits
from .errors import ValidationError


def validate_content(content: Optional[str]) -> None:
    if not content:
        raise ValidationError("Content is required")
    if len(content) > Limits.MAX_CONTENT_LENGTH:
        raise ValidationError(
            f"Content exceeds maximum length of {Limits.MAX_CONTENT_LENGTH} characters"
        )


def validate_messages_count(count: int) -> None:
    if count == 0:
        raise ValidationError("At least one message is required")
    if count > Limits.MAX_MESSAGES_COUNT:
        raise ValidationError(
            f"Messages exceed maximum count of {Limits.MAX_MESSAGES_COUNT}"
        )
