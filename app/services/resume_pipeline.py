"""
Upload, evaluation and deletion flows.

Each flow is a short linear sequence over the repository, blob storage, the
embedding client, the vector index and the LLM evaluator. The relational store
is the primary data path: its failures abort the flow. Blob and vector
deletions are side channels: their failures are logged and the flow continues.
Nothing is rolled back across stores.
"""
import logging
import time
from typing import Callable, Iterator, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models.evaluation import Evaluation
from app.models.resume import Resume
from app.schemas.resume import Criteria, EvaluationProgress, EvaluationSummary, BulkSummary
from app.services.chunking import prepare_chunks_for_embedding
from app.services.embedding_service import EmbeddingService
from app.services.evaluation import ResumeEvaluator
from app.services.extraction import extract_text
from app.services.resume_repository import ResumeRepository
from app.services.storage import BlobStorage, storage_name
from app.services.vector_store import VectorStore

logger = logging.getLogger(__name__)


def ingest_resume(
    db: Session,
    storage: BlobStorage,
    embedder: EmbeddingService,
    vectors: VectorStore,
    file_name: str,
    content: bytes,
    content_type: Optional[str] = None
) -> Resume:
    """store blob → extract text → insert row → chunk → embed → upsert vectors."""
    upload_start = time.time()
    logger.info(f"Upload started: {file_name} ({len(content)} bytes)")

    file_url = storage.upload(storage_name(file_name), content, content_type or "application/octet-stream")

    extracted = extract_text(content, file_name)
    logger.info(f"Text extracted, length: {len(extracted)}")

    resume = ResumeRepository.create_resume(
        db,
        file_name=file_name,
        file_url=file_url,
        file_type=content_type,
        extracted_text=extracted
    )
    logger.info(f"Resume inserted: {resume.id}")

    chunks = prepare_chunks_for_embedding(extracted, settings.chunk_max_tokens, settings.chunk_overlap)
    if chunks:
        embeddings = embedder.embed_batch([chunk.text for chunk in chunks])
        vectors.store_resume_chunks(resume.id, chunks, embeddings, file_name)
    else:
        logger.warning(f"Resume {resume.id} has no text to index")

    logger.info(f"Upload complete for {resume.id} in {time.time() - upload_start:.2f}s")
    return resume


def delete_resume(db: Session, storage: BlobStorage, vectors: VectorStore, resume_id: str) -> None:
    resume = ResumeRepository.get_resume(db, resume_id)
    if not resume:
        raise NotFoundError("Resume not found")

    blob_name = storage.path_from_url(resume.file_url)
    if blob_name:
        try:
            storage.remove(blob_name)
        except Exception as e:
            logger.warning(f"Error deleting file from storage: {e}", extra={"resume_id": resume_id})

    try:
        vectors.delete_resume_chunks(resume_id)
    except Exception as e:
        logger.warning(f"Error deleting resume chunks from vector index: {e}", extra={"resume_id": resume_id})

    ResumeRepository.delete_resume(db, resume)
    logger.info(f"Resume deleted successfully: {resume_id}")


def check_resume(db: Session, evaluator: ResumeEvaluator, resume_id: Optional[str],
                 criteria: Optional[Criteria]) -> Evaluation:
    if not resume_id:
        raise ValidationError("Resume ID is required")
    if not criteria or not criteria.is_complete():
        raise ValidationError("All criteria fields are required")

    resume = ResumeRepository.get_resume(db, resume_id)
    if not resume:
        raise NotFoundError("Resume not found")
    if not resume.extracted_text:
        raise ValidationError("Resume text not available")

    snapshot = criteria.snapshot()
    outcome = evaluator.evaluate(resume.extracted_text, snapshot)
    evaluation = ResumeRepository.insert_evaluation(db, resume_id, snapshot, outcome)
    logger.info("Evaluation completed successfully", extra={"resume_id": resume_id, "fit_score": outcome.fit_score})
    return evaluation


def validate_bulk_request(resume_ids: Optional[List[str]], criteria: Optional[Criteria]) -> None:
    if not resume_ids:
        raise ValidationError("Resume IDs are required")
    if criteria is None:
        raise ValidationError("Criteria is required")
    if not criteria.has_role_or_skills():
        raise ValidationError("Either role or skills must be provided in criteria")


def bulk_evaluate_events(
    db: Session,
    evaluator: ResumeEvaluator,
    resume_ids: List[str],
    criteria: Criteria,
    delay_seconds: float = 1.0,
    sleep: Callable[[float], None] = time.sleep
) -> Iterator[EvaluationProgress]:
    """
    Evaluate resumes one after another, yielding a progress/result/error event per
    resume and a final complete event. One resume failing never stops the rest.
    """
    snapshot = criteria.snapshot()
    passed = failed = rejected = errors = 0
    total = len(resume_ids)
    logger.info(f"Starting bulk evaluation for {total} resumes")

    for i, resume_id in enumerate(resume_ids):
        if i > 0 and delay_seconds > 0:
            sleep(delay_seconds)

        fallback_name = f"Resume {i + 1}"
        try:
            resume = ResumeRepository.get_resume(db, resume_id)
            if not resume:
                yield EvaluationProgress(type="error", resume_id=resume_id, resume_name=fallback_name,
                                         error="Resume not found")
                errors += 1
                continue

            base = dict(resume_id=resume.id, resume_name=resume.file_name, resume_url=resume.file_url)
            yield EvaluationProgress(type="progress", message=f"Processing {resume.file_name}...", **base)

            if not resume.extracted_text:
                yield EvaluationProgress(type="error", error="Resume text not available", **base)
                errors += 1
                continue

            outcome = evaluator.evaluate(resume.extracted_text, snapshot)

            if not outcome.is_resume:
                logger.info(f"Document rejected: not a resume ({resume.id})")
                yield EvaluationProgress(type="error", error="This file does not appear to be a resume",
                                         is_not_resume=True, **base)
                rejected += 1
                continue

            try:
                ResumeRepository.replace_evaluation(db, resume.id, snapshot, outcome)
            except Exception as e:
                logger.error(f"Database insert error: {e}", extra={"resume_id": resume.id})
                yield EvaluationProgress(type="error", error="Failed to save evaluation", **base)
                errors += 1
                continue

            if outcome.status == "pass":
                passed += 1
            else:
                failed += 1
            yield EvaluationProgress(type="result", evaluation=EvaluationSummary(**outcome.summary()), **base)

        except Exception as e:
            logger.error(f"Error processing resume {resume_id}: {e}", exc_info=True)
            db.rollback()
            message = getattr(e, "message", None) or str(e) or "Unknown error occurred"
            yield EvaluationProgress(type="error", resume_id=resume_id, resume_name=fallback_name, error=message)
            errors += 1

    yield EvaluationProgress(
        type="complete",
        summary=BulkSummary(total=total, passed=passed, failed=failed, rejected=rejected, errors=errors)
    )
