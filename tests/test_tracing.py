from fastapi import status

from app.core import tracing
from app.core.config import TracingSettings


class FailingLangfuse:
    def __init__(self):
        self.flush_calls = 0

    def flush(self):
        self.flush_calls += 1
        raise ConnectionError("langfuse unreachable")

    def shutdown(self):
        raise ConnectionError("langfuse unreachable")


def test_tracing_needs_both_keys():
    assert not TracingSettings(public_key=None, secret_key=None).enabled
    assert not TracingSettings(public_key="pk-lf-1", secret_key=None).enabled
    assert TracingSettings(public_key="pk-lf-1", secret_key="sk-lf-1").enabled


def test_traced_leaves_functions_untouched_without_credentials(monkeypatch):
    monkeypatch.setattr(tracing, "get_langfuse", lambda: None)

    def handler():
        return "ok"

    assert tracing.traced("GET /api/getResumes")(handler) is handler


def test_traced_wraps_with_observe_when_enabled(monkeypatch):
    seen = {}

    def fake_observe(**options):
        seen.update(options)
        return lambda func: func

    monkeypatch.setattr(tracing, "get_langfuse", lambda: FailingLangfuse())
    monkeypatch.setattr(tracing, "observe", fake_observe)

    tracing.traced("llm-completion", as_type="generation", capture_input=False)(lambda: None)

    assert seen == {
        "name": "llm-completion",
        "as_type": "generation",
        "capture_input": False,
        "capture_output": True,
    }


def test_flush_failure_is_logged_not_raised(monkeypatch, caplog):
    client = FailingLangfuse()
    monkeypatch.setattr(tracing, "get_langfuse", lambda: client)

    tracing.flush_traces()

    assert client.flush_calls == 1
    assert "Failed to flush traces" in caplog.text


def test_failing_flush_does_not_change_the_response(client, make_resume, monkeypatch):
    make_resume(file_name="traced.pdf")
    baseline = client.get("/api/getResumes")

    langfuse = FailingLangfuse()
    monkeypatch.setattr(tracing, "get_langfuse", lambda: langfuse)
    response = client.get("/api/getResumes")

    assert langfuse.flush_calls == 1
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == baseline.json()
