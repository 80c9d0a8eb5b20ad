import json
import time

import httpx
import pytest

from schedule_export.clients.base_client import RateLimitError, ServiceError
from schedule_export.clients.correction_client import CallBudget, CorrectionClient
from schedule_export.models.state import ServiceState

CORRECTION_URL = "https://llm.test/v1/chat/completions"


def correction_client(handler, state=None) -> CorrectionClient:
    state = state or ServiceState()
    return CorrectionClient(
        api_key="sk-test-abcdefgh",
        api_url=CORRECTION_URL,
        model="test-model",
        budget=CallBudget(state, calls_per_minute=100, sleep=lambda seconds: None),
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def chat_response(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def test_correct_returns_first_choice():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return chat_response(" Oberweißbach \n")

    client = correction_client(handler)

    assert client.correct("Oberwei�bach") == "Oberweißbach"
    request = requests[0]
    assert request.headers["Authorization"] == "Bearer sk-test-abcdefgh"
    payload = json.loads(request.content)
    assert payload["model"] == "test-model"
    assert payload["messages"][-1]["content"] == "Oberwei�bach"
    assert "Volleyball" in payload["messages"][0]["content"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"error": "nope"}),
        httpx.Response(200, json={"choices": [{"message": {"content": "  "}}]}),
        httpx.Response(200, text="not json"),
        httpx.Response(502, text="bad gateway"),
    ],
)
def test_malformed_or_failed_responses_raise_service_error(response):
    client = correction_client(lambda request: response)
    with pytest.raises(ServiceError):
        client.correct("Oberwei�bach")


def test_rate_limit_is_retried_then_raised(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda seconds: None)
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(429, headers={"Retry-After": "1"})

    client = correction_client(handler)

    with pytest.raises(RateLimitError):
        client.correct("Oberwei�bach")
    assert len(attempts) == 3


def test_rate_limit_recovers(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda seconds: None)
    responses = [httpx.Response(429), chat_response("Oberweißbach")]

    client = correction_client(lambda request: responses.pop(0))

    assert client.correct("Oberwei�bach") == "Oberweißbach"


def test_missing_key_is_rejected():
    with pytest.raises(ServiceError):
        CorrectionClient(
            api_key="",
            api_url=CORRECTION_URL,
            model="m",
            budget=CallBudget(ServiceState(), 10),
        )


def test_call_budget_sleeps_when_window_is_full():
    state = ServiceState()
    ticks = iter([0.0, 1.0, 2.0, 60.0])
    sleeps = []
    budget = CallBudget(
        state, calls_per_minute=2, clock=lambda: next(ticks), sleep=sleeps.append
    )

    budget.acquire()
    budget.acquire()
    budget.acquire()

    assert sleeps == [58.0]
    assert list(state.correction_call_times) == [1.0, 60.0]


def test_call_budget_forgets_old_calls():
    state = ServiceState()
    ticks = iter([0.0, 30.0, 61.0])
    sleeps = []
    budget = CallBudget(
        state, calls_per_minute=2, clock=lambda: next(ticks), sleep=sleeps.append
    )

    budget.acquire()
    budget.acquire()
    budget.acquire()

    assert sleeps == []
    assert list(state.correction_call_times) == [30.0, 61.0]
