import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from pinecone import Pinecone

from app.core.config import VectorSettings, settings
from app.core.exceptions import VectorStoreError
from app.core.tracing import traced
from app.services.chunking import TextChunk

logger = logging.getLogger(__name__)

UPSERT_BATCH_SIZE = 50


@dataclass
class ChunkMatch:
    id: str
    score: float
    resume_id: str
    file_name: str
    chunk_index: int
    text: str


def chunk_vector_id(resume_id: str, chunk_index: int) -> str:
    return f"{resume_id}_chunk_{chunk_index}"


def resume_filter(resume_id: str) -> Dict[str, Any]:
    return {"resumeId": {"$eq": resume_id}}


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class VectorStore:
    """
    Resume chunk vectors in a Pinecone index.

    The index is opened on first use. Nothing here is transactional with the
    relational store; callers decide which failures are fatal.
    """

    def __init__(self, config: VectorSettings = None, index: Any = None):
        self.config = config or settings.vector
        self._index = index

    @property
    def index(self):
        if self._index is None:
            if not self.config.pinecone_api_key:
                raise VectorStoreError("Vector database not configured. Please add PINECONE_API_KEY to your environment.")
            client = Pinecone(api_key=self.config.pinecone_api_key)
            self._index = client.Index(self.config.index_name)
        return self._index

    def store_resume_chunks(self, resume_id: str, chunks: Sequence[TextChunk],
                            embeddings: Sequence[List[float]], file_name: str) -> int:
        """Replace the resume's chunk set with the given chunks. Returns the number stored."""
        if len(chunks) != len(embeddings):
            raise VectorStoreError(f"Got {len(embeddings)} embeddings for {len(chunks)} chunks")

        vectors = [
            {
                "id": chunk_vector_id(resume_id, chunk.chunk_index),
                "values": list(embedding),
                "metadata": {
                    "resumeId": resume_id,
                    "fileName": file_name,
                    "chunkIndex": chunk.chunk_index,
                    "text": chunk.text,
                },
            }
            for chunk, embedding in zip(chunks, embeddings)
        ]

        # One chunk set per resume: drop whatever a previous upload left behind
        self.delete_resume_chunks(resume_id)

        for i in range(0, len(vectors), UPSERT_BATCH_SIZE):
            self.index.upsert(vectors=vectors[i:i + UPSERT_BATCH_SIZE])

        logger.info(f"Stored {len(vectors)} chunks for resume {resume_id} in vector index")
        return len(vectors)

    @traced("search-resume-chunks", capture_input=False)
    def search_resume_chunks(self, query_vector: List[float], top_k: int = 10,
                             filter: Optional[Dict[str, Any]] = None) -> List[ChunkMatch]:
        response = self.index.query(
            vector=query_vector,
            top_k=top_k,
            include_metadata=True,
            filter=filter,
        )
        matches = []
        for match in _field(response, "matches", None) or []:
            metadata = _field(match, "metadata", None) or {}
            matches.append(ChunkMatch(
                id=_field(match, "id", ""),
                score=float(_field(match, "score", 0.0) or 0.0),
                resume_id=metadata.get("resumeId", ""),
                file_name=metadata.get("fileName", ""),
                chunk_index=int(metadata.get("chunkIndex", 0)),
                text=metadata.get("text", ""),
            ))
        return matches

    def delete_resume_chunks(self, resume_id: str) -> None:
        self.index.delete(filter=resume_filter(resume_id))
        logger.info(f"Deleted all chunks for resume {resume_id} from vector index")

    def delete_all(self) -> None:
        self.index.delete(delete_all=True)
        logger.warning("Deleted all vectors from vector index")
