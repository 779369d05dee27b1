from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from .analysis import AnalysisOrchestrator
from .config import SafeNestConfig
from .constants import SDK_VERSION, ApiPath
from .enums import to_api_string
from .errors import SafeNestError, ValidationError, error_for
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
    EmotionsResult,
    GenerateReportInput,
    GetActionPlanInput,
    GroomingResult,
    RateLimitInfo,
    ReportResult,
    UnsafeResult,
    Usage,
)
from .transport import RequestDescriptor, RequestExecutor, ResponseMetadata, RetryOrchestrator
from .validation import validate_content, validate_messages_count

T = TypeVar("T", bound=BaseModel)


class SafeNestClient:
    """
    Async client for the SafeNest child-safety API.

    A client instance owns one pooled ``httpx.AsyncClient`` and the most
    recent usage / rate-limit snapshots reported by the server. Snapshots are
    replaced wholesale after each response, so reads never see a half-updated
    value. Share one instance across tasks; create separate instances when
    you need separate usage tracking.

    Usage::

        async with SafeNestClient("sn_live_...") as client:
            result = await client.detect_bullying(DetectBullyingInput(content="..."))
            if result.is_bullying:
                print(result.severity)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        config: Optional[SafeNestConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        logger: Optional[SafeNestLogger] = None,
        **overrides: Any,
    ) -> None:
        if config is None:
            settings: Dict[str, Any] = dict(overrides)
            if api_key is not None:
                settings["api_key"] = api_key
            config = SafeNestConfig(**settings)
        elif api_key is not None or overrides:
            raise ValueError("Pass either config or api_key/overrides, not both")

        self.config = config
        self.logger = logger

        secret = config.api_key.get_secret_value()
        if http_client is None:
            self._http = httpx.AsyncClient(
                headers={
                    "Authorization": f"Bearer {secret}",
                    "Accept": "application/json",
                    "User-Agent": f"safenest-python/{SDK_VERSION}",
                },
                timeout=config.timeout_seconds,
            )
            self._owns_http = True
        else:
            self._http = http_client
            self._owns_http = False
            if "authorization" not in self._http.headers:
                self._http.headers["Authorization"] = f"Bearer {secret}"

        self.usage: Optional[Usage] = None
        self.rate_limit: Optional[RateLimitInfo] = None
        self.usage_warning: Optional[str] = None
        self.last_request_id: Optional[str] = None
        self.last_latency_ms: Optional[int] = None

        self._executor = RequestExecutor(
            self._http,
            base_url=config.base_url,
            timeout_ms=config.timeout_ms,
            on_metadata=self._record_metadata,
            logger=logger,
        )
        self._retry = RetryOrchestrator(
            self._executor,
            max_retries=config.max_retries,
            base_delay_ms=config.retry_delay_ms,
            logger=logger,
        )
        self._analysis = AnalysisOrchestrator(
            self.detect_bullying,
            self.detect_unsafe,
            logger=logger,
        )

    async def __aenter__(self) -> "SafeNestClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # Safety detection
    # ------------------------------------------------------------------

    async def detect_bullying(self, request: DetectBullyingInput) -> BullyingResult:
        """Detect bullying in text content."""
        validate_content(request.content)
        body: Dict[str, Any] = {"text": request.content}
        _add_context(body, request.context)
        _add_tracking(body, request)
        return await self._request("POST", ApiPath.BULLYING, body, BullyingResult)

    async def detect_grooming(self, request: DetectGroomingInput) -> GroomingResult:
        """Detect grooming patterns in a conversation."""
        validate_messages_count(len(request.messages))
        body: Dict[str, Any] = {
            "messages": [
                {"sender_role": to_api_string(message.role), "text": message.content}
                for message in request.messages
            ]
        }
        context: Dict[str, Any] = {}
        if request.child_age is not None:
            context["child_age"] = request.child_age
        if request.context is not None and request.context.platform is not None:
            context["platform"] = request.context.platform
        if context:
            body["context"] = context
        _add_tracking(body, request)
        return await self._request("POST", ApiPath.GROOMING, body, GroomingResult)

    async def detect_unsafe(self, request: DetectUnsafeInput) -> UnsafeResult:
        """Detect unsafe content (self-harm, violence, hate speech, ...)."""
        validate_content(request.content)
        body: Dict[str, Any] = {"text": request.content}
        _add_context(body, request.context)
        _add_tracking(body, request)
        return await self._request("POST", ApiPath.UNSAFE, body, UnsafeResult)

    async def analyze(
        self,
        request: Union[str, AnalyzeInput],
        context: Optional[AnalysisContext] = None,
    ) -> AnalyzeResult:
        """
        Combined analysis: bullying and unsafe detection run concurrently.

        Any failing sub-check fails the whole call with that sub-check's error.
        """
        if isinstance(request, str):
            request = AnalyzeInput(content=request, context=context)
        elif context is not None:
            raise ValueError("context must be set on the AnalyzeInput")
        validate_content(request.content)
        return await self._analysis.run(request)

    # ------------------------------------------------------------------
    # Emotions, guidance, reports
    # ------------------------------------------------------------------

    async def analyze_emotions(self, request: AnalyzeEmotionsInput) -> EmotionsResult:
        body: Dict[str, Any] = {}
        if request.messages:
            validate_messages_count(len(request.messages))
            body["messages"] = [
                {"sender": message.sender, "text": message.content}
                for message in request.messages
            ]
        elif request.content:
            validate_content(request.content)
            body["messages"] = [{"sender": "user", "text": request.content}]
        else:
            raise ValidationError("Either content or messages is required")
        _add_context(body, request.context)
        _add_tracking(body, request)
        return await self._request("POST", ApiPath.EMOTIONS, body, EmotionsResult)

    async def get_action_plan(self, request: GetActionPlanInput) -> ActionPlanResult:
        """Generate an age-appropriate action plan."""
        body: Dict[str, Any] = {
            "role": to_api_string(request.audience),
            "situation": request.situation,
        }
        if request.child_age is not None:
            body["child_age"] = request.child_age
        if request.severity is not None:
            body["severity"] = to_api_string(request.severity)
        _add_tracking(body, request)
        return await self._request("POST", ApiPath.ACTION_PLAN, body, ActionPlanResult)

    async def generate_report(self, request: GenerateReportInput) -> ReportResult:
        """Generate a professional incident report."""
        validate_messages_count(len(request.messages))
        body: Dict[str, Any] = {
            "messages": [
                {"sender": message.sender, "text": message.content}
                for message in request.messages
            ]
        }
        meta: Dict[str, Any] = {}
        if request.child_age is not None:
            meta["child_age"] = request.child_age
        if request.incident_type is not None:
            meta["type"] = request.incident_type
        if meta:
            body["meta"] = meta
        _add_tracking(body, request)
        return await self._request("POST", ApiPath.INCIDENT_REPORT, body, ReportResult)

    # ------------------------------------------------------------------
    # Account management (GDPR)
    # ------------------------------------------------------------------

    async def delete_account_data(self) -> AccountDeletionResult:
        """Delete all account data (right to erasure)."""
        return await self._request("DELETE", ApiPath.ACCOUNT_DATA, None, AccountDeletionResult)

    async def export_account_data(self) -> AccountExportResult:
        """Export all account data as JSON (right to data portability)."""
        return await self._request("GET", ApiPath.ACCOUNT_EXPORT, None, AccountExportResult)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: ApiPath,
        body: Optional[Dict[str, Any]],
        result_type: Type[T],
    ) -> T:
        outcome = await self._retry.run(RequestDescriptor(method, path.value, body))
        if not outcome.ok:
            raise error_for(outcome.error)
        try:
            return result_type.model_validate(outcome.payload)
        except SchemaValidationError as exc:
            raise SafeNestError(
                f"Failed to parse API response: {exc.error_count()} invalid field(s)"
            ) from exc

    def _record_metadata(self, metadata: ResponseMetadata) -> None:
        # Snapshots are only replaced when the response carried them.
        self.last_request_id = metadata.request_id
        self.last_latency_ms = metadata.latency_ms
        self.usage_warning = metadata.usage_warning
        if metadata.usage is not None:
            self.usage = metadata.usage
        if metadata.rate_limit is not None:
            self.rate_limit = metadata.rate_limit


def _add_context(body: Dict[str, Any], context: Optional[AnalysisContext]) -> None:
    if context is None:
        return
    payload = context.to_payload()
    if payload:
        body["context"] = payload


def _add_tracking(body: Dict[str, Any], request: Any) -> None:
    if request.external_id is not None:
        body["external_id"] = request.external_id
    if request.customer_id is not None:
        body["customer_id"] = request.customer_id
    if request.metadata is not None:
        body["metadata"] = request.metadata
