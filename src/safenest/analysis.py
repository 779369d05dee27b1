from __future__ import annotations

import asyncio
from contextlib import nullcontext
from typing import Any, Awaitable, Callable, Coroutine, Dict, Iterable, List, Optional

from .enums import AnalysisType, RiskLevel
from .errors import ValidationError
from .logging import SafeNestLogger
from .models import (
    AnalyzeInput,
    AnalyzeResult,
    BullyingResult,
    DetectBullyingInput,
    DetectUnsafeInput,
    UnsafeResult,
)

DEFAULT_CHECKS = (AnalysisType.BULLYING.value, AnalysisType.UNSAFE.value)
SUPPORTED_CHECKS = frozenset(DEFAULT_CHECKS)
NO_CONCERNS_SUMMARY = "No safety concerns detected."

# Highest priority first.
ACTION_PRIORITY = ("immediate_intervention", "flag_for_moderator", "monitor")

_RISK_THRESHOLDS = (
    (0.9, RiskLevel.CRITICAL),
    (0.7, RiskLevel.HIGH),
    (0.5, RiskLevel.MEDIUM),
    (0.3, RiskLevel.LOW),
)


def risk_level_for_score(score: float) -> RiskLevel:
    for threshold, level in _RISK_THRESHOLDS:
        if score >= threshold:
            return level
    return RiskLevel.SAFE


def highest_priority_action(actions: Iterable[Optional[str]]) -> str:
    present = {action for action in actions if action}
    for action in ACTION_PRIORITY:
        if action in present:
            return action
    return "none"


def build_summary(
    bullying: Optional[BullyingResult],
    unsafe: Optional[UnsafeResult],
) -> str:
    findings: List[str] = []
    if bullying is not None and bullying.is_bullying:
        findings.append(f"Bullying detected ({bullying.severity})")
    if unsafe is not None and unsafe.unsafe:
        findings.append(f"Unsafe content: {', '.join(unsafe.categories)}")
    return ". ".join(findings) if findings else NO_CONCERNS_SUMMARY


async def gather_named(calls: Dict[str, Coroutine[Any, Any, Any]]) -> Dict[str, Any]:
    """
    Run coroutines concurrently as named tasks and collect their results.

    The first failure (in completion order) cancels the remaining tasks and is
    re-raised as is. Cancelling the caller cancels every task. All tasks are
    finished before this returns or raises.
    """
    tasks = {
        name: asyncio.create_task(call, name=f"safenest-{name}")
        for name, call in calls.items()
    }
    if not tasks:
        return {}
    try:
        done, _ = await asyncio.wait(tasks.values(), return_when=asyncio.FIRST_EXCEPTION)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()
        return {name: task.result() for name, task in tasks.items()}
    finally:
        for task in tasks.values():
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks.values(), return_exceptions=True)


class AnalysisOrchestrator:
    """Fans out the sub-checks of a combined analysis and merges the verdicts."""

    def __init__(
        self,
        detect_bullying: Callable[[DetectBullyingInput], Awaitable[BullyingResult]],
        detect_unsafe: Callable[[DetectUnsafeInput], Awaitable[UnsafeResult]],
        logger: Optional[SafeNestLogger] = None,
    ) -> None:
        self._detect_bullying = detect_bullying
        self._detect_unsafe = detect_unsafe
        self.logger = logger

    async def run(self, request: AnalyzeInput) -> AnalyzeResult:
        checks = self._resolve_checks(request.include)

        calls: Dict[str, Coroutine[Any, Any, Any]] = {}
        if AnalysisType.BULLYING.value in checks:
            calls[AnalysisType.BULLYING.value] = self._detect_bullying(
                DetectBullyingInput(
                    content=request.content,
                    context=request.context,
                    external_id=request.external_id,
                    customer_id=request.customer_id,
                    metadata=request.metadata,
                )
            )
        if AnalysisType.UNSAFE.value in checks:
            calls[AnalysisType.UNSAFE.value] = self._detect_unsafe(
                DetectUnsafeInput(
                    content=request.content,
                    context=request.context,
                    external_id=request.external_id,
                    customer_id=request.customer_id,
                    metadata=request.metadata,
                )
            )

        stage = self.logger.stage("analyze") if self.logger else nullcontext()
        with stage:
            results = await gather_named(calls)

        return combine_results(
            results.get(AnalysisType.BULLYING.value),
            results.get(AnalysisType.UNSAFE.value),
            request,
        )

    @staticmethod
    def _resolve_checks(include: Optional[List[str]]) -> List[str]:
        if include is None:
            return list(DEFAULT_CHECKS)
        checks = [str(check).strip().lower() for check in include]
        unknown = sorted(set(checks) - SUPPORTED_CHECKS)
        if unknown:
            raise ValidationError(
                f"Unsupported analysis checks: {', '.join(unknown)} "
                f"(supported: {', '.join(DEFAULT_CHECKS)})"
            )
        return checks


def combine_results(
    bullying: Optional[BullyingResult],
    unsafe: Optional[UnsafeResult],
    request: AnalyzeInput,
) -> AnalyzeResult:
    scores = [result.risk_score for result in (bullying, unsafe) if result is not None]
    risk_score = max(scores, default=0.0)
    return AnalyzeResult(
        risk_level=risk_level_for_score(risk_score),
        risk_score=risk_score,
        summary=build_summary(bullying, unsafe),
        bullying=bullying,
        unsafe=unsafe,
        recommended_action=highest_priority_action(
            result.recommended_action for result in (bullying, unsafe) if result is not None
        ),
        external_id=request.external_id,
        customer_id=request.customer_id,
        metadata=request.metadata,
    )
