import pytest

from app.core.exceptions import VectorStoreError
from app.services.chunking import TextChunk
from app.services.vector_store import UPSERT_BATCH_SIZE, VectorStore, chunk_vector_id


def chunks(n):
    return [TextChunk(text=f"chunk {i}", chunk_index=i, token_count=2) for i in range(n)]


def test_store_uses_resume_scoped_ids_and_metadata(vector_store, fake_index):
    stored = vector_store.store_resume_chunks("r1", chunks(2), [[0.1], [0.2]], "cv.pdf")

    assert stored == 2
    assert set(fake_index.vectors) == {"r1_chunk_0", "r1_chunk_1"}
    assert fake_index.vectors["r1_chunk_1"]["metadata"] == {
        "resumeId": "r1", "fileName": "cv.pdf", "chunkIndex": 1, "text": "chunk 1"
    }
    assert chunk_vector_id("r1", 7) == "r1_chunk_7"


def test_restoring_replaces_previous_chunk_set(vector_store, fake_index):
    vector_store.store_resume_chunks("r1", chunks(3), [[0.1]] * 3, "cv.pdf")
    vector_store.store_resume_chunks("r1", chunks(1), [[0.1]], "cv.pdf")
    assert set(fake_index.vectors) == {"r1_chunk_0"}


def test_upserts_are_batched():
    calls = []

    class CountingIndex:
        def upsert(self, vectors):
            calls.append(len(vectors))

        def delete(self, filter=None, delete_all=False):
            pass

    n = UPSERT_BATCH_SIZE + 5
    VectorStore(index=CountingIndex()).store_resume_chunks("r1", chunks(n), [[0.0]] * n, "cv.pdf")
    assert calls == [UPSERT_BATCH_SIZE, 5]


def test_mismatched_embeddings_are_rejected(vector_store):
    with pytest.raises(VectorStoreError):
        vector_store.store_resume_chunks("r1", chunks(2), [[0.1]], "cv.pdf")


def test_search_maps_matches(vector_store, fake_index):
    fake_index.query_results = [
        {"id": "r2_chunk_0", "score": 0.91, "metadata": {"resumeId": "r2", "fileName": "b.pdf", "chunkIndex": 0,
                                                         "text": "Kubernetes"}},
    ]
    matches = vector_store.search_resume_chunks([0.1, 0.2], top_k=5)

    assert len(matches) == 1
    assert matches[0].resume_id == "r2"
    assert matches[0].score == pytest.approx(0.91)
    assert matches[0].text == "Kubernetes"


def test_delete_resume_chunks_only_touches_that_resume(vector_store, fake_index):
    vector_store.store_resume_chunks("r1", chunks(2), [[0.1]] * 2, "a.pdf")
    vector_store.store_resume_chunks("r2", chunks(1), [[0.1]], "b.pdf")

    vector_store.delete_resume_chunks("r1")
    assert set(fake_index.vectors) == {"r2_chunk_0"}

    vector_store.delete_all()
    assert fake_index.vectors == {}


def test_unconfigured_index_raises():
    from app.core.config import VectorSettings
    store = VectorStore(config=VectorSettings(pinecone_api_key=None))
    with pytest.raises(VectorStoreError):
        store.search_resume_chunks([0.1])
