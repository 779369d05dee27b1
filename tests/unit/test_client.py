from __future__ import annotations

import asyncio

import httpx
import pytest

from safenest import (
    AnalysisContext,
    AnalyzeEmotionsInput,
    AnalyzeInput,
    Audience,
    AuthenticationError,
    DetectBullyingInput,
    DetectGroomingInput,
    DetectUnsafeInput,
    EmotionMessage,
    GenerateReportInput,
    GetActionPlanInput,
    GroomingMessage,
    MessageRole,
    RateLimitError,
    ReportMessage,
    RiskLevel,
    SafeNestClient,
    SafeNestConfig,
    SafeNestError,
    ServerError,
    Severity,
    ValidationError,
)
from safenest.models import RateLimitInfo, Usage

BASE_URL = "https://api.example.test"
API_KEY = "sn_test_0123456789"

USAGE_HEADERS = {
    "X-Request-Id": "req_1",
    "X-Monthly-Limit": "1000",
    "X-Monthly-Used": "900",
    "X-Monthly-Remaining": "100",
    "X-RateLimit-Limit": "60",
    "X-RateLimit-Remaining": "58",
    "X-Usage-Warning": "90% of monthly quota used",
}


class DummyAsyncClient:
    """Routes requests by path to queued responses."""

    def __init__(self, routes=None) -> None:
        self.headers = httpx.Headers()
        self.routes = {path: list(items) for path, items in (routes or {}).items()}
        self.requests = []
        self.started = asyncio.Event()
        self.closed = False

    async def request(self, method, url, json=None):
        path = url[len(BASE_URL):]
        self.requests.append({"method": method, "path": path, "json": json})
        self.started.set()
        queue = self.routes.get(path) or [httpx.Response(404)]
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True


def _client(http: DummyAsyncClient, **overrides) -> SafeNestClient:
    settings = {"base_url": BASE_URL, "retry_delay_ms": 1}
    settings.update(overrides)
    return SafeNestClient(API_KEY, http_client=http, **settings)


@pytest.mark.anyio
async def test_detect_bullying_sends_body_and_records_usage() -> None:
    http = DummyAsyncClient(
        {
            "/api/v1/safety/bullying": [
                httpx.Response(
                    200,
                    json={
                        "is_bullying": True,
                        "bullying_type": ["insult"],
                        "severity": "high",
                        "risk_score": 0.8,
                        "external_id": "msg_9",
                        "unexpected": "ignored",
                    },
                    headers=USAGE_HEADERS,
                )
            ]
        }
    )
    client = _client(http)

    result = await client.detect_bullying(
        DetectBullyingInput(
            content="you are worthless",
            context=AnalysisContext(language="en", age_group="11-13"),
            external_id="msg_9",
            metadata={"room": "lobby"},
        )
    )

    assert result.is_bullying is True
    assert result.parsed_severity is Severity.HIGH
    assert result.external_id == "msg_9"
    assert http.requests == [
        {
            "method": "POST",
            "path": "/api/v1/safety/bullying",
            "json": {
                "text": "you are worthless",
                "context": {"language": "en", "age_group": "11-13"},
                "external_id": "msg_9",
                "metadata": {"room": "lobby"},
            },
        }
    ]
    assert http.headers["authorization"] == f"Bearer {API_KEY}"
    assert client.usage == Usage(limit=1000, used=900, remaining=100)
    assert client.rate_limit == RateLimitInfo(limit=60, remaining=58)
    assert client.usage_warning == "90% of monthly quota used"
    assert client.last_request_id == "req_1"
    assert client.last_latency_ms is not None


@pytest.mark.anyio
async def test_usage_is_updated_even_when_request_fails() -> None:
    http = DummyAsyncClient(
        {
            "/api/v1/safety/unsafe": [
                httpx.Response(
                    401,
                    json={"error": {"message": "Invalid API key", "code": "AUTH_1001"}},
                    headers=USAGE_HEADERS,
                )
            ]
        }
    )
    client = _client(http, max_retries=3)

    with pytest.raises(AuthenticationError) as excinfo:
        await client.detect_unsafe(DetectUnsafeInput(content="hello"))

    assert excinfo.value.code == "AUTH_1001"
    assert excinfo.value.status_code == 401
    assert len(http.requests) == 1
    assert client.usage == Usage(limit=1000, used=900, remaining=100)


@pytest.mark.anyio
async def test_snapshots_survive_responses_without_usage_headers() -> None:
    http = DummyAsyncClient(
        {
            "/api/v1/safety/unsafe": [
                httpx.Response(200, json={"unsafe": False}, headers=USAGE_HEADERS),
                httpx.Response(200, json={"unsafe": False}, headers={"X-Request-Id": "req_2"}),
            ]
        }
    )
    client = _client(http)

    await client.detect_unsafe(DetectUnsafeInput(content="one"))
    await client.detect_unsafe(DetectUnsafeInput(content="two"))

    assert client.usage == Usage(limit=1000, used=900, remaining=100)
    assert client.last_request_id == "req_2"
    assert client.usage_warning is None


@pytest.mark.anyio
async def test_server_errors_are_retried_until_success() -> None:
    http = DummyAsyncClient(
        {
            "/api/v1/safety/unsafe": [
                httpx.Response(503, json={"error": {"message": "busy"}}),
                httpx.Response(500),
                httpx.Response(200, json={"unsafe": True, "categories": ["violence"]}),
            ]
        }
    )
    client = _client(http, max_retries=3)

    result = await client.detect_unsafe(DetectUnsafeInput(content="text"))

    assert result.unsafe is True
    assert len(http.requests) == 3


@pytest.mark.anyio
async def test_server_errors_exhaust_retry_budget() -> None:
    http = DummyAsyncClient({"/api/v1/safety/unsafe": [httpx.Response(500)]})
    client = _client(http, max_retries=2)

    with pytest.raises(ServerError):
        await client.detect_unsafe(DetectUnsafeInput(content="text"))
    assert len(http.requests) == 3


@pytest.mark.anyio
async def test_rate_limit_retry_after_is_honoured() -> None:
    http = DummyAsyncClient(
        {
            "/api/v1/safety/unsafe": [
                httpx.Response(429, json={"error": {"message": "Slow down", "retry_after": 0}}),
                httpx.Response(200, json={"unsafe": False}),
            ]
        }
    )
    client = _client(http, max_retries=1)

    result = await client.detect_unsafe(DetectUnsafeInput(content="text"))

    assert result.unsafe is False
    assert len(http.requests) == 2


@pytest.mark.anyio
async def test_rate_limit_error_exposes_retry_after() -> None:
    http = DummyAsyncClient(
        {"/api/v1/safety/unsafe": [httpx.Response(429, json={"error": {"retry_after": 0}})]}
    )
    client = _client(http, max_retries=0)

    with pytest.raises(RateLimitError) as excinfo:
        await client.detect_unsafe(DetectUnsafeInput(content="text"))
    assert excinfo.value.retry_after_seconds == 0


@pytest.mark.anyio
async def test_analyze_combines_concurrent_checks() -> None:
    http = DummyAsyncClient(
        {
            "/api/v1/safety/bullying": [
                httpx.Response(
                    200,
                    json={
                        "is_bullying": True,
                        "severity": "high",
                        "risk_score": 0.95,
                        "recommended_action": "flag_for_moderator",
                    },
                )
            ],
            "/api/v1/safety/unsafe": [
                httpx.Response(200, json={"unsafe": False, "risk_score": 0.2})
            ],
        }
    )
    client = _client(http)

    result = await client.analyze("you are worthless", context=AnalysisContext(platform="chat"))

    assert result.risk_level is RiskLevel.CRITICAL
    assert result.risk_score == 0.95
    assert result.summary == "Bullying detected (high)"
    assert result.recommended_action == "flag_for_moderator"
    assert sorted(request["path"] for request in http.requests) == [
        "/api/v1/safety/bullying",
        "/api/v1/safety/unsafe",
    ]
    assert all(request["json"]["context"] == {"platform": "chat"} for request in http.requests)


@pytest.mark.anyio
async def test_analyze_fails_with_sub_check_error() -> None:
    http = DummyAsyncClient(
        {
            "/api/v1/safety/bullying": [httpx.Response(200, json={"is_bullying": False})],
            "/api/v1/safety/unsafe": [httpx.Response(401, json={"error": {"message": "nope"}})],
        }
    )
    client = _client(http)

    with pytest.raises(AuthenticationError):
        await client.analyze(AnalyzeInput(content="text"))


@pytest.mark.anyio
async def test_analyze_rejects_context_alongside_input() -> None:
    client = _client(DummyAsyncClient())
    with pytest.raises(ValueError):
        await client.analyze(AnalyzeInput(content="text"), context=AnalysisContext())


@pytest.mark.anyio
async def test_grooming_body_shape() -> None:
    http = DummyAsyncClient(
        {"/api/v1/safety/grooming": [httpx.Response(200, json={"grooming_risk": "HIGH", "flags": ["secrecy"]})]}
    )
    client = _client(http)

    result = await client.detect_grooming(
        DetectGroomingInput(
            messages=[
                GroomingMessage(role=MessageRole.ADULT, content="don't tell your parents"),
                GroomingMessage(role=MessageRole.CHILD, content="ok"),
            ],
            child_age=12,
            context=AnalysisContext(platform="game", language="en"),
        )
    )

    assert result.parsed_grooming_risk.value == "high"
    assert http.requests[0]["json"] == {
        "messages": [
            {"sender_role": "adult", "text": "don't tell your parents"},
            {"sender_role": "child", "text": "ok"},
        ],
        "context": {"child_age": 12, "platform": "game"},
    }


@pytest.mark.anyio
async def test_emotions_action_plan_and_report_bodies() -> None:
    http = DummyAsyncClient(
        {
            "/api/v1/analysis/emotions": [httpx.Response(200, json={"trend": "worsening"})],
            "/api/v1/guidance/action-plan": [
                httpx.Response(200, json={"steps": ["Talk calmly"], "approx_reading_level": "grade 6"})
            ],
            "/api/v1/reports/incident": [httpx.Response(200, json={"risk_level": "moderate"})],
        }
    )
    client = _client(http)

    emotions = await client.analyze_emotions(AnalyzeEmotionsInput(content="I feel alone"))
    plan = await client.get_action_plan(
        GetActionPlanInput(situation="bullied at school", child_age=10, severity=Severity.MEDIUM)
    )
    report = await client.generate_report(
        GenerateReportInput(
            messages=[ReportMessage(sender="peer", content="loser")],
            child_age=10,
            incident_type="bullying",
        )
    )

    assert emotions.parsed_trend.value == "worsening"
    assert plan.reading_level == "grade 6"
    assert report.parsed_risk_level is RiskLevel.MEDIUM
    assert [request["json"] for request in http.requests] == [
        {"messages": [{"sender": "user", "text": "I feel alone"}]},
        {
            "role": "parent",
            "situation": "bullied at school",
            "child_age": 10,
            "severity": "medium",
        },
        {
            "messages": [{"sender": "peer", "text": "loser"}],
            "meta": {"child_age": 10, "type": "bullying"},
        },
    ]


@pytest.mark.anyio
async def test_emotions_prefers_messages_over_content() -> None:
    http = DummyAsyncClient({"/api/v1/analysis/emotions": [httpx.Response(200, json={})]})
    client = _client(http)

    await client.analyze_emotions(
        AnalyzeEmotionsInput(
            content="ignored",
            messages=[EmotionMessage(sender="child", content="sad today")],
        )
    )

    assert http.requests[0]["json"]["messages"] == [{"sender": "child", "text": "sad today"}]


@pytest.mark.anyio
async def test_account_endpoints() -> None:
    http = DummyAsyncClient(
        {
            "/api/v1/account/data": [httpx.Response(200, json={"message": "Deleted", "deleted_count": 4})],
            "/api/v1/account/export": [
                httpx.Response(
                    200,
                    json={"userId": "user_1", "exportedAt": "2026-01-01T00:00:00Z", "data": {"api_keys": []}},
                )
            ],
        }
    )
    client = _client(http)

    deleted = await client.delete_account_data()
    exported = await client.export_account_data()

    assert deleted.deleted_count == 4
    assert exported.user_id == "user_1"
    assert exported.exported_at == "2026-01-01T00:00:00Z"
    assert [(r["method"], r["json"]) for r in http.requests] == [("DELETE", None), ("GET", None)]


@pytest.mark.anyio
async def test_malformed_result_shape_is_reported() -> None:
    http = DummyAsyncClient(
        {"/api/v1/safety/bullying": [httpx.Response(200, json={"risk_score": "very"})]}
    )
    client = _client(http)

    with pytest.raises(SafeNestError, match="Failed to parse API response"):
        await client.detect_bullying(DetectBullyingInput(content="text"))


@pytest.mark.anyio
@pytest.mark.parametrize(
    "call",
    [
        lambda c: c.detect_bullying(DetectBullyingInput(content="")),
        lambda c: c.detect_unsafe(DetectUnsafeInput(content="x" * 50_001)),
        lambda c: c.detect_grooming(DetectGroomingInput(messages=[])),
        lambda c: c.analyze(""),
        lambda c: c.analyze_emotions(AnalyzeEmotionsInput()),
        lambda c: c.generate_report(
            GenerateReportInput(messages=[ReportMessage(sender="a", content="b")] * 101)
        ),
    ],
)
async def test_invalid_input_is_rejected_before_any_request(call) -> None:
    http = DummyAsyncClient()
    client = _client(http)

    with pytest.raises(ValidationError):
        await call(client)
    assert http.requests == []


@pytest.mark.anyio
async def test_cancellation_during_backoff_propagates() -> None:
    http = DummyAsyncClient({"/api/v1/safety/unsafe": [httpx.Response(503)]})
    client = _client(http, max_retries=3, retry_delay_ms=10_000)

    task = asyncio.create_task(client.detect_unsafe(DetectUnsafeInput(content="text")))
    await http.started.wait()
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert len(http.requests) == 1


@pytest.mark.anyio
async def test_network_failure_surfaces_after_retries() -> None:
    http = DummyAsyncClient({"/api/v1/safety/unsafe": [httpx.ConnectError("refused")]})
    client = _client(http, max_retries=1)

    with pytest.raises(SafeNestError) as excinfo:
        await client.detect_unsafe(DetectUnsafeInput(content="text"))
    assert "refused" in str(excinfo.value)
    assert len(http.requests) == 2


@pytest.mark.anyio
async def test_injected_client_is_not_closed() -> None:
    http = DummyAsyncClient()
    async with _client(http):
        pass
    assert http.closed is False


@pytest.mark.anyio
async def test_owned_client_is_closed() -> None:
    client = SafeNestClient(API_KEY)
    assert client._http.headers["user-agent"].startswith("safenest-python/")
    async with client:
        pass
    assert client._http.is_closed


def test_config_and_overrides_are_exclusive() -> None:
    config = SafeNestConfig(api_key=API_KEY)
    with pytest.raises(ValueError):
        SafeNestClient(API_KEY, config=config)
    with pytest.raises(ValueError):
        SafeNestClient(config=config, max_retries=1)


def test_audience_defaults_to_parent() -> None:
    assert GetActionPlanInput(situation="x").audience is Audience.PARENT
