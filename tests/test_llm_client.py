import json

import pytest
import requests

from app.core.config import AISettings
from app.core.exceptions import LLMAuthError, LLMError, LLMQuotaError
from app.services.llm_client import LLMClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = json.dumps(self._payload)

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def message(**fields):
    return FakeResponse(200, {"choices": [{"message": fields}]})


def make_client(*responses, api_key="test-key"):
    config = AISettings(openrouter_api_key=api_key, base_url="https://llm.test/v1", model_name="test-model")
    session = FakeSession(*responses)
    return LLMClient(config=config, session=session), session


def test_complete_returns_text_and_sends_model():
    client, session = make_client(message(role="assistant", content="hello"))
    assert client.complete([{"role": "user", "content": "hi"}]) == "hello"

    sent = session.requests[0]
    assert sent["url"] == "https://llm.test/v1/chat/completions"
    assert sent["json"]["model"] == "test-model"
    assert sent["headers"]["Authorization"] == "Bearer test-key"
    assert "tools" not in sent["json"]


def test_tool_call_suppresses_text():
    client, session = make_client(message(content="ignored", tool_calls=[{
        "function": {"name": "evaluate_resumes", "arguments": '{"role": "Designer", "skills": ["Figma"]}'}
    }]))
    reply = client.generate_with_tools([{"role": "user", "content": "x"}], [{"type": "function"}])

    assert reply.text == ""
    assert reply.tool_call.name == "evaluate_resumes"
    assert reply.tool_call.arguments == {"role": "Designer", "skills": ["Figma"]}
    assert session.requests[0]["json"]["tool_choice"] == "auto"


def test_text_reply_has_no_tool_call():
    client, _ = make_client(message(content="Which role?"))
    reply = client.generate_with_tools([{"role": "user", "content": "x"}], [])
    assert reply.text == "Which role?"
    assert reply.tool_call is None


def test_malformed_tool_arguments_become_empty():
    client, _ = make_client(message(tool_calls=[{"function": {"name": "search_resumes", "arguments": "{oops"}}]))
    reply = client.generate_with_tools([{"role": "user", "content": "x"}], [{"type": "function"}])
    assert reply.tool_call.arguments == {}


@pytest.mark.parametrize("status_code,error,http_status", [
    (401, LLMAuthError, 401),
    (403, LLMAuthError, 401),
    (429, LLMQuotaError, 429),
    (404, LLMError, 500),
    (500, LLMError, 500),
])
def test_http_errors_are_typed(status_code, error, http_status):
    client, _ = make_client(FakeResponse(status_code, {"error": "nope"}))
    with pytest.raises(error) as exc_info:
        client.complete([{"role": "user", "content": "x"}])
    assert exc_info.value.status_code == http_status


def test_missing_api_key_is_a_configuration_error():
    client, session = make_client(api_key=None)
    with pytest.raises(LLMError, match="OPENROUTER_API_KEY"):
        client.complete([{"role": "user", "content": "x"}])
    assert session.requests == []


def test_connection_errors_are_retried(monkeypatch):
    monkeypatch.setattr(LLMClient._post.retry, "sleep", lambda seconds: None)
    client, session = make_client(
        requests.exceptions.ConnectionError("reset"),
        message(content="recovered"),
    )
    assert client.complete([{"role": "user", "content": "x"}]) == "recovered"
    assert len(session.requests) == 2


def test_empty_choices_raise():
    client, _ = make_client(FakeResponse(200, {"choices": []}))
    with pytest.raises(LLMError):
        client.complete([{"role": "user", "content": "x"}])


class HTMLResponse(FakeResponse):
    def __init__(self):
        super().__init__(200)
        self.text = "<html><body>Bad gateway</body></html>"

    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


def test_non_json_success_body_is_an_llm_error():
    client, _ = make_client(HTMLResponse())
    with pytest.raises(LLMError) as exc_info:
        client.complete([{"role": "user", "content": "x"}])
    assert exc_info.value.message == "AI service returned an invalid response."
    assert exc_info.value.status_code == 500
