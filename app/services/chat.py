import logging
import time
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from app.core import prompts
from app.core.exceptions import LLMAuthError, LLMQuotaError, ValidationError
from app.models.resume import Resume
from app.schemas.chat import ChatEvaluation, ChatMessage, ChatResponse, ExtractedCriteria
from app.schemas.resume import Criteria
from app.services.criteria_extraction import classify_intent, criteria_from_arguments, extract_criteria
from app.services.embedding_service import EmbeddingService
from app.services.evaluation import ResumeEvaluator
from app.services.llm_client import LLMClient, ToolCall
from app.services.resume_repository import ResumeRepository
from app.services.vector_store import VectorStore

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_TOP_K = 10


class ChatService:
    """
    Chat-driven evaluation.

    Keyword intent classification decides whether the model is consulted at all.
    For evaluation requests the model may call `evaluate_resumes` (score every
    stored resume) or `search_resumes` (score only resumes whose chunks match a
    semantic query). Criteria the model leaves out are force-extracted from the
    user's message.
    """

    def __init__(
        self,
        db: Session,
        llm: LLMClient,
        evaluator: ResumeEvaluator,
        embedder: EmbeddingService,
        vectors: VectorStore,
        delay_seconds: float = 0.0,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.db = db
        self.llm = llm
        self.evaluator = evaluator
        self.embedder = embedder
        self.vectors = vectors
        self.delay_seconds = delay_seconds
        self.sleep = sleep

    def respond(self, messages: Optional[List[ChatMessage]], resume_count: Optional[int] = None) -> ChatResponse:
        if not messages:
            raise ValidationError("Messages are required")

        latest = messages[-1].content
        intent = classify_intent(latest)
        logger.info(f"Chat intent classified as {intent}")

        if intent == "greeting":
            return ChatResponse(response=prompts.GREETING_REPLY, intent=intent)
        if intent == "off_topic":
            return ChatResponse(response=prompts.OFF_TOPIC_REPLY, intent=intent)

        history = [
            {"role": "user" if m.role == "user" else "assistant", "content": m.content}
            for m in messages
        ]
        reply = self.llm.generate_with_tools(
            [{"role": "system", "content": prompts.CHAT_SYSTEM}] + history,
            prompts.CHAT_TOOLS
        )

        call: Optional[ToolCall] = reply.tool_call
        if call and call.name == "search_resumes":
            query = str(call.arguments.get("query") or latest)
            criteria = extract_criteria(latest)
            criteria.job_description = criteria.job_description or query
            resumes = self._search(query, call.arguments.get("top_k"), resume_count)
        else:
            if call and call.name == "evaluate_resumes":
                criteria = criteria_from_arguments(call.arguments, latest)
            else:
                # The model answered in prose: fall back to pattern extraction
                criteria = extract_criteria(latest)
            if not criteria.has_role_or_skills():
                return ChatResponse(response=reply.text or prompts.NO_CRITERIA_REPLY, intent=intent)
            resumes = ResumeRepository.list_resumes(self.db, limit=resume_count)

        if not resumes:
            return ChatResponse(
                response="No matching resumes found. Upload some resumes first, then describe the role again.",
                intent=intent,
                criteria=criteria.snapshot()
            )

        evaluations = self._evaluate_all(resumes, criteria)
        return ChatResponse(
            response=self._summary(latest, evaluations),
            intent=intent,
            evaluations=evaluations,
            criteria=criteria.snapshot()
        )

    def _search(self, query: str, top_k, resume_count: Optional[int]) -> List[Resume]:
        try:
            k = int(top_k) if top_k else DEFAULT_SEARCH_TOP_K
        except (TypeError, ValueError):
            k = DEFAULT_SEARCH_TOP_K
        matches = self.vectors.search_resume_chunks(self.embedder.embed_query(query), top_k=max(1, k))

        # Best score per resume, highest first
        ranked: List[str] = []
        for match in sorted(matches, key=lambda m: m.score, reverse=True):
            if match.resume_id and match.resume_id not in ranked:
                ranked.append(match.resume_id)
        if resume_count is not None:
            ranked = ranked[:resume_count]

        resumes = []
        for resume_id in ranked:
            resume = ResumeRepository.get_resume(self.db, resume_id)
            if resume:
                resumes.append(resume)
            else:
                logger.warning(f"Vector index references missing resume {resume_id}")
        logger.info(f"Semantic search matched {len(resumes)} resumes")
        return resumes

    def _evaluate_all(self, resumes: List[Resume], criteria: Criteria) -> List[ChatEvaluation]:
        snapshot = criteria.snapshot()
        extracted = ExtractedCriteria(role=criteria.role or "Not specified", skills=list(criteria.skills or []))
        results: List[ChatEvaluation] = []

        for i, resume in enumerate(resumes):
            if not resume.extracted_text:
                results.append(ChatEvaluation(
                    resume_id=resume.id, resume_name=resume.file_name, score=0, feedback="Resume text not available",
                    missing_skills=[], status="fail", error="Resume text not available", extracted_criteria=extracted
                ))
                continue
            try:
                outcome = self.evaluator.evaluate(resume.extracted_text, snapshot)
                ResumeRepository.replace_evaluation(self.db, resume.id, snapshot, outcome)
                results.append(ChatEvaluation(
                    resume_id=resume.id, resume_name=resume.file_name, score=outcome.fit_score,
                    feedback=outcome.feedback, missing_skills=outcome.missing_skills, status=outcome.status,
                    is_resume=outcome.is_resume, extracted_criteria=extracted
                ))
            except (LLMAuthError, LLMQuotaError):
                raise
            except Exception as e:
                logger.error(f"Error evaluating resume {resume.id} from chat: {e}")
                self.db.rollback()
                results.append(ChatEvaluation(
                    resume_id=resume.id, resume_name=resume.file_name, score=0, feedback="Evaluation failed",
                    missing_skills=[], status="fail", error=getattr(e, "message", str(e)), extracted_criteria=extracted
                ))

            if i < len(resumes) - 1 and self.delay_seconds > 0:
                self.sleep(self.delay_seconds)

        return results

    @staticmethod
    def _summary(requirement: str, evaluations: List[ChatEvaluation]) -> str:
        passed = sum(1 for e in evaluations if e.status == "pass")
        failed = len(evaluations) - passed
        return (
            "✅ **Evaluation Complete!**\n\n"
            f"📋 **Requirement:** {requirement}\n\n"
            "📊 **Results:**\n"
            f"- Total: {len(evaluations)}\n"
            f"- Passed: {passed}\n"
            f"- Failed: {failed}"
        )
