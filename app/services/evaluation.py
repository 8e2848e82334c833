import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from app.core import prompts
from app.core.exceptions import InvalidLLMResponseError
from app.services.llm_client import LLMClient

logger = logging.getLogger(__name__)

PASS_THRESHOLD = 50
AI_PROVIDER = "openrouter"

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def status_for(score: int) -> str:
    return "pass" if score >= PASS_THRESHOLD else "fail"


@dataclass
class EvaluationOutcome:
    is_resume: bool
    fit_score: int
    missing_skills: List[str] = field(default_factory=list)
    feedback: str = ""
    raw_response: Dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> str:
        if not self.is_resume:
            return "fail"
        return status_for(self.fit_score)

    def summary(self) -> Dict[str, Any]:
        return {
            "score": self.fit_score,
            "feedback": self.feedback,
            "missing_skills": self.missing_skills,
            "status": self.status,
        }


def clean_llm_text(raw: str) -> str:
    """Strip markdown fences and surrounding prose, leaving the JSON object text."""
    text = (raw or "").strip()
    if text.startswith("```"):
        text = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text))
    match = _JSON_OBJECT.search(text)
    if match:
        text = match.group()
    return text


def parse_llm_json(raw: str) -> Dict[str, Any]:
    text = clean_llm_text(raw)
    try:
        parsed = json.loads(text)
    except ValueError:
        logger.error(f"Invalid JSON from LLM: {text[:500]}")
        raise InvalidLLMResponseError(text)
    if not isinstance(parsed, dict):
        raise InvalidLLMResponseError(text)
    return parsed


def _coerce_score(value: Any) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, score))


_FALSE_WORDS = {"false", "no", "0", "n"}
_TRUE_WORDS = {"true", "yes", "1", "y"}


def _coerce_flag(value: Any, default: bool) -> bool:
    """JSON booleans, numbers and "true"/"false"-style strings; anything else is the default."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _FALSE_WORDS:
            return False
        if word in _TRUE_WORDS:
            return True
    return default


def normalize_result(parsed: Dict[str, Any]) -> EvaluationOutcome:
    """
    Apply the numeric policy to a parsed model response.

    Documents the model flags as not-a-resume always end up with score 0,
    no missing skills and a fail status, whatever else the model reported.
    """
    is_resume = _coerce_flag(parsed.get("is_resume"), default=True)
    raw = {**parsed, "ai_provider": AI_PROVIDER}

    if not is_resume:
        return EvaluationOutcome(
            is_resume=False,
            fit_score=0,
            missing_skills=[],
            feedback=prompts.NOT_A_RESUME_FEEDBACK,
            raw_response=raw,
        )

    missing = parsed.get("missing_skills") or []
    if not isinstance(missing, list):
        missing = [str(missing)]

    return EvaluationOutcome(
        is_resume=True,
        fit_score=_coerce_score(parsed.get("fit_score")),
        missing_skills=[str(skill) for skill in missing],
        feedback=str(parsed.get("feedback") or "No feedback"),
        raw_response=raw,
    )


class ResumeEvaluator:
    """Prompt → LLM → JSON contract for a single resume."""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    def evaluate(self, resume_text: str, criteria: Dict[str, Any]) -> EvaluationOutcome:
        prompt = prompts.build_resume_prompt(resume_text, criteria)
        raw = self.llm.complete([{"role": "user", "content": prompt}])
        outcome = normalize_result(parse_llm_json(raw))
        logger.info(
            "Resume evaluated",
            extra={"fit_score": outcome.fit_score, "status": outcome.status, "is_resume": outcome.is_resume}
        )
        return outcome
