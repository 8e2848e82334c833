import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from app.core.config import AISettings, settings
from app.core.exceptions import LLMError, LLMAuthError, LLMQuotaError
from app.core.tracing import traced

logger = logging.getLogger(__name__)


@dataclass
class ToolCall:
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolAwareReply:
    """Either a function invocation chosen by the model or its free-text answer, never both."""
    text: str = ""
    tool_call: Optional[ToolCall] = None


def _decode_arguments(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    try:
        decoded = json.loads(raw or "{}")
    except (TypeError, ValueError):
        logger.warning(f"Discarding malformed tool arguments: {str(raw)[:200]}")
        return {}
    return decoded if isinstance(decoded, dict) else {}


class LLMClient:
    """
    Chat-completions client for an OpenAI-compatible endpoint (OpenRouter by default).

    Transport failures (timeouts, dropped connections) are retried; HTTP errors are
    mapped to typed exceptions so handlers can answer 401/429/500.
    """

    def __init__(self, config: AISettings = None, session: Optional[requests.Session] = None):
        self.config = config or settings.ai
        self.session = session or requests.Session()

    @property
    def completions_url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        if not self.config.openrouter_api_key:
            raise LLMError("LLM API key not configured. Please add OPENROUTER_API_KEY to your environment.")
        return {
            "Authorization": f"Bearer {self.config.openrouter_api_key}",
            "Content-Type": "application/json",
            "X-Title": settings.app_name,
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((requests.exceptions.Timeout, requests.exceptions.ConnectionError)),
        reraise=True
    )
    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        logger.info(f"Calling AI Model: {payload['model']}")
        response = self.session.post(
            self.completions_url,
            json=payload,
            headers=self._headers(),
            timeout=self.config.timeout_seconds,
        )
        self._raise_for_status(response)
        return response.json()

    @staticmethod
    def _raise_for_status(response: requests.Response) -> None:
        if response.status_code < 400:
            return
        body = response.text[:300]
        logger.error(f"AI service HTTP error {response.status_code}: {body}")
        if response.status_code in (401, 403):
            raise LLMAuthError()
        if response.status_code == 429:
            raise LLMQuotaError()
        if response.status_code == 404:
            raise LLMError("LLM model not available. Please try again later.", error_code="LLM_MODEL_UNAVAILABLE")
        raise LLMError(f"AI service returned error: {response.status_code}")

    def _call(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            data = self._post(payload)
        except LLMError:
            raise
        except requests.exceptions.Timeout:
            logger.error("AI service timeout.")
            raise LLMError("AI service reached timeout limit.")
        except ValueError as e:
            # 2xx with a body that is not JSON, e.g. a proxy error page
            logger.error(f"AI service returned a non-JSON body: {e}")
            raise LLMError("AI service returned an invalid response.")
        except requests.exceptions.RequestException as e:
            logger.error(f"AI service unreachable: {e}")
            raise LLMError(f"AI service error: {str(e)}")

        choices = data.get("choices") or []
        if not choices:
            raise LLMError("AI service returned no choices.")
        return choices[0].get("message") or {}

    @traced("llm-completion", as_type="generation")
    def complete(self, messages: List[Dict[str, Any]], temperature: Optional[float] = None,
                 max_tokens: Optional[int] = None) -> str:
        """Plain completion; returns the assistant text."""
        payload = {
            "model": self.config.model_name,
            "messages": messages,
            "temperature": self.config.temperature if temperature is None else temperature,
            "top_p": 0.8,
            "max_tokens": max_tokens or self.config.max_output_tokens,
        }
        message = self._call(payload)
        return message.get("content") or ""

    @traced("llm-tool-generation", as_type="generation")
    def generate_with_tools(self, messages: List[Dict[str, Any]], tools: List[Dict[str, Any]],
                            temperature: float = 0.3) -> ToolAwareReply:
        payload: Dict[str, Any] = {
            "model": self.config.model_name,
            "messages": messages,
            "temperature": temperature,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"

        message = self._call(payload)
        tool_calls = message.get("tool_calls") or []
        if tool_calls:
            function = tool_calls[0].get("function") or {}
            call = ToolCall(name=function.get("name", ""), arguments=_decode_arguments(function.get("arguments")))
            logger.info(f"Model invoked tool {call.name}")
            return ToolAwareReply(tool_call=call)

        return ToolAwareReply(text=message.get("content") or "")
