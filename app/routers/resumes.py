import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.limiter import limiter
from app.core.tracing import traced
from app.database import get_db
from app.dependencies import get_blob_storage, get_embedding_service, get_vector_store
from app.schemas.resume import (
    DeleteResumeRequest, ResumeResponse, ResumeSummary, ResumeWithEvaluations, UploadResumeResponse
)
from app.services import resume_pipeline
from app.services.embedding_service import EmbeddingService
from app.services.resume_repository import ResumeRepository
from app.services.storage import BlobStorage
from app.services.vector_store import VectorStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/getResumes", response_model=List[ResumeSummary])
@traced("GET /api/getResumes", capture_input=False, capture_output=False)
def get_resumes(db: Session = Depends(get_db)):
    """All resumes, newest first."""
    return ResumeRepository.list_resumes(db)


@router.get("/getResume", response_model=ResumeWithEvaluations)
@traced("GET /api/getResume", capture_input=False, capture_output=False)
def get_resume(id: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
    if not id:
        raise ValidationError("Resume ID is required")
    resume = ResumeRepository.get_resume(db, id, with_evaluations=True)
    if not resume:
        raise NotFoundError("Resume not found")
    return resume


@router.post("/uploadResume", response_model=UploadResumeResponse)
@limiter.limit("10/minute")
@traced("POST /api/uploadResume", capture_input=False, capture_output=False)
def upload_resume(
    request: Request,
    file: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
    embedder: EmbeddingService = Depends(get_embedding_service),
    vectors: VectorStore = Depends(get_vector_store)
):
    """
    Upload a resume (PDF, DOCX or plain text).
    Stores the file, extracts its text, saves the resume and indexes its chunks.
    """
    if file is None or not file.filename:
        raise ValidationError("File required")

    content = file.file.read()
    max_bytes = settings.storage.max_upload_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise ValidationError(f"File size exceeds {settings.storage.max_upload_mb}MB limit")

    resume = resume_pipeline.ingest_resume(
        db, storage, embedder, vectors,
        file_name=file.filename,
        content=content,
        content_type=file.content_type
    )
    return {"resume": ResumeResponse.model_validate(resume)}


@router.delete("/deleteResume")
@traced("DELETE /api/deleteResume", capture_input=False)
def delete_resume(
    body: DeleteResumeRequest,
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
    vectors: VectorStore = Depends(get_vector_store)
):
    """Delete a resume, its evaluations, its stored file and its indexed chunks."""
    if not body.resume_id:
        raise ValidationError("Resume ID is required")
    resume_pipeline.delete_resume(db, storage, vectors, body.resume_id)
    return {"message": "Resume deleted successfully"}
