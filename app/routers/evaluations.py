import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.limiter import limiter
from app.core.tracing import flush_traces, traced
from app.database import get_db
from app.dependencies import get_evaluator, get_session_factory
from app.schemas.resume import (
    BulkEvaluateRequest, CheckResumeRequest, DeleteEvaluationRequest, EvaluationResponse
)
from app.services import resume_pipeline
from app.services.evaluation import ResumeEvaluator
from app.services.resume_repository import ResumeRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/checkResume", response_model=EvaluationResponse)
@limiter.limit("30/minute")
@traced("POST /api/checkResume", capture_input=False, capture_output=False)
def check_resume(
    request: Request,
    body: CheckResumeRequest,
    db: Session = Depends(get_db),
    evaluator: ResumeEvaluator = Depends(get_evaluator)
):
    """Evaluate one resume against complete criteria and store the evaluation."""
    return resume_pipeline.check_resume(db, evaluator, body.resume_id, body.criteria)


@router.post("/bulkEvaluate")
@traced("POST /api/bulkEvaluate", capture_input=False, capture_output=False)
def bulk_evaluate(
    body: BulkEvaluateRequest,
    evaluator: ResumeEvaluator = Depends(get_evaluator),
    session_factory=Depends(get_session_factory)
):
    """
    Evaluate many resumes sequentially, streaming one server-sent event per step:
    progress, result or error for each resume, then a final complete summary.
    """
    resume_pipeline.validate_bulk_request(body.resume_ids, body.criteria)
    logger.info(f"Bulk evaluate request received for {len(body.resume_ids)} resumes")

    def event_stream():
        db = session_factory()
        try:
            for event in resume_pipeline.bulk_evaluate_events(
                db, evaluator, body.resume_ids, body.criteria,
                delay_seconds=settings.bulk_evaluation_delay_seconds
            ):
                yield event.to_sse()
        finally:
            db.close()
            flush_traces()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.delete("/deleteEvaluation")
@traced("DELETE /api/deleteEvaluation", capture_input=False)
def delete_evaluation(body: DeleteEvaluationRequest, db: Session = Depends(get_db)):
    if not body.evaluation_id:
        raise ValidationError("Evaluation ID is required")
    if not ResumeRepository.delete_evaluation(db, body.evaluation_id):
        raise NotFoundError("Evaluation not found")
    return {"success": True}
