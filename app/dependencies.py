"""
Process-scoped external clients.

Each client is built once on first use and shared by every request. Tests swap
them out through app.dependency_overrides.
"""
from functools import lru_cache

from fastapi import Depends

from app.database import SessionLocal
from app.services.embedding_service import EmbeddingService
from app.services.evaluation import ResumeEvaluator
from app.services.llm_client import LLMClient
from app.services.storage import BlobStorage
from app.services.vector_store import VectorStore


@lru_cache(maxsize=1)
def get_llm_client() -> LLMClient:
    return LLMClient()


@lru_cache(maxsize=1)
def get_embedding_service() -> EmbeddingService:
    return EmbeddingService()


@lru_cache(maxsize=1)
def get_vector_store() -> VectorStore:
    return VectorStore()


@lru_cache(maxsize=1)
def get_blob_storage() -> BlobStorage:
    return BlobStorage()


def get_evaluator(llm: LLMClient = Depends(get_llm_client)) -> ResumeEvaluator:
    return ResumeEvaluator(llm)


def get_session_factory():
    """Session factory for streaming responses, which outlive the request-scoped session."""
    return SessionLocal


__all__ = [
    "get_llm_client",
    "get_embedding_service",
    "get_vector_store",
    "get_blob_storage",
    "get_evaluator",
    "get_session_factory",
]
