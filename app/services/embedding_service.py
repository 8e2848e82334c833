import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import requests

from app.core.config import AISettings, settings
from app.core.exceptions import EmbeddingError
from app.core.tracing import traced

logger = logging.getLogger(__name__)

BATCH_SIZE = 10
QUERY_TEMPLATE = "Search query: {query}"


class EmbeddingService:
    """
    Embeddings through the OpenAI-compatible /embeddings endpoint.
    No retry or backoff: the first failure aborts the whole batch.
    """

    def __init__(self, config: AISettings = None, session: Optional[requests.Session] = None):
        self.config = config or settings.ai
        self.session = session or requests.Session()

    @property
    def embeddings_url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/embeddings"

    def embed(self, text: str) -> List[float]:
        """Embedding vector for a single text."""
        if not self.config.openrouter_api_key:
            raise EmbeddingError("Embedding API key not configured. Please add OPENROUTER_API_KEY to your environment.")
        try:
            response = self.session.post(
                self.embeddings_url,
                json={"model": self.config.embedding_model, "input": text},
                headers={
                    "Authorization": f"Bearer {self.config.openrouter_api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
            return list(response.json()["data"][0]["embedding"])
        except (requests.exceptions.RequestException, KeyError, IndexError, ValueError) as e:
            logger.error(f"Error generating embedding: {e}")
            raise EmbeddingError() from e

    @traced("embed-resume-chunks", capture_input=False, capture_output=False)
    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Embed texts in sequential sub-batches of BATCH_SIZE; calls inside a
        sub-batch run concurrently. Output order matches input order.
        """
        start_time = time.time()
        embeddings: List[List[float]] = []
        total_batches = (len(texts) + BATCH_SIZE - 1) // BATCH_SIZE

        for i in range(0, len(texts), BATCH_SIZE):
            batch = texts[i:i + BATCH_SIZE]
            with ThreadPoolExecutor(max_workers=len(batch)) as pool:
                embeddings.extend(pool.map(self.embed, batch))
            logger.info(f"Generated embeddings for batch {i // BATCH_SIZE + 1}/{total_batches}")

        elapsed = time.time() - start_time
        logger.info(f"Generated {len(embeddings)} embeddings in {elapsed:.2f}s")
        return embeddings

    def embed_query(self, query: str) -> List[float]:
        return self.embed(QUERY_TEMPLATE.format(query=query))
