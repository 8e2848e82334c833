from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.tracing import traced
from app.database import get_db
from app.dependencies import get_embedding_service, get_evaluator, get_llm_client, get_vector_store
from app.schemas.chat import ChatRequest, ChatResponse
from app.services.chat import ChatService
from app.services.embedding_service import EmbeddingService
from app.services.evaluation import ResumeEvaluator
from app.services.llm_client import LLMClient
from app.services.vector_store import VectorStore

router = APIRouter()


@router.post("/chat-criteria", response_model=ChatResponse)
@traced("POST /api/chat-criteria", capture_input=False, capture_output=False)
def chat_criteria(
    body: ChatRequest,
    db: Session = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
    evaluator: ResumeEvaluator = Depends(get_evaluator),
    embedder: EmbeddingService = Depends(get_embedding_service),
    vectors: VectorStore = Depends(get_vector_store)
):
    """Chat with the evaluation assistant; evaluation requests score the stored resumes."""
    service = ChatService(
        db, llm, evaluator, embedder, vectors,
        delay_seconds=settings.bulk_evaluation_delay_seconds
    )
    return service.respond(body.messages, body.resume_count)
