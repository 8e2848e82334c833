import json
import os
import re
import tempfile

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["BULK_EVALUATION_DELAY_SECONDS"] = "0"
os.environ["LANGFUSE_PUBLIC_KEY"] = ""
os.environ["LANGFUSE_SECRET_KEY"] = ""
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="resume-checker-tests-"))

from app.core.config import settings
from app.database import Base, get_db
from app.dependencies import (
    get_blob_storage, get_embedding_service, get_llm_client, get_session_factory, get_vector_store
)
from app.main import app
from app.models.evaluation import Evaluation
from app.models.resume import Resume
from app.services import chunking
from app.services.llm_client import ToolAwareReply
from app.services.storage import BlobStorage
from app.services.vector_store import VectorStore
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

RESUME_WORDS = ("experience", "education", "skills")


def keyword_judge(prompt: str) -> str:
    """
    Deterministic stand-in for the model: scores the share of criteria skills
    found in the document, answering in a fenced block like real models often do.
    """
    document = prompt.split("Document Content:\n", 1)[1].rsplit("\n\nCriteria:\n", 1)[0]
    criteria_json = prompt.rsplit("\n\nCriteria:\n", 1)[1].split("\n\nIMPORTANT:", 1)[0]
    criteria = json.loads(criteria_json)

    lowered = document.lower()
    if not any(word in lowered for word in RESUME_WORDS):
        payload = {"is_resume": False, "fit_score": 77, "missing_skills": ["x"], "feedback": "nope"}
    else:
        skills = criteria.get("skills") or []
        missing = [s for s in skills if not re.search(r"(?<!\w)" + re.escape(s.lower()) + r"(?!\w)", lowered)]
        score = 100 if not skills else round(100 * (len(skills) - len(missing)) / len(skills))
        payload = {"is_resume": True, "fit_score": score, "missing_skills": missing, "feedback": "Scored by keywords"}
    return "```json\n" + json.dumps(payload) + "\n```"


class FakeLLM:
    """Records calls; answers completions with keyword_judge unless told otherwise."""

    def __init__(self):
        self.completions = []
        self.tool_requests = []
        self.completion_handler = lambda messages: keyword_judge(messages[-1]["content"])
        self.tool_reply = ToolAwareReply(text="Tell me more about the role.")

    def complete(self, messages, temperature=None, max_tokens=None):
        self.completions.append(messages)
        return self.completion_handler(messages)

    def generate_with_tools(self, messages, tools, temperature=0.3):
        self.tool_requests.append((messages, tools))
        return self.tool_reply


class FakeEmbedder:
    def __init__(self):
        self.batches = []
        self.queries = []

    def embed(self, text):
        return [float(len(text) % 7), 1.0, 0.5]

    def embed_batch(self, texts):
        self.batches.append(list(texts))
        return [self.embed(t) for t in texts]

    def embed_query(self, query):
        self.queries.append(query)
        return self.embed("Search query: " + query)


class FakeIndex:
    """In-memory stand-in for a Pinecone index."""

    def __init__(self):
        self.vectors = {}
        self.query_results = None
        self.fail_deletes = False
        self.delete_calls = []

    def upsert(self, vectors):
        for v in vectors:
            self.vectors[v["id"]] = v

    def query(self, vector, top_k, include_metadata=True, filter=None):
        if self.query_results is not None:
            return {"matches": self.query_results[:top_k]}
        matches = [
            {"id": v["id"], "score": 1.0, "metadata": v["metadata"]}
            for v in self.vectors.values()
            if not filter or v["metadata"].get("resumeId") == filter["resumeId"]["$eq"]
        ]
        return {"matches": matches[:top_k]}

    def delete(self, filter=None, delete_all=False):
        self.delete_calls.append(filter if not delete_all else "ALL")
        if self.fail_deletes:
            raise RuntimeError("vector index unavailable")
        if delete_all:
            self.vectors.clear()
            return
        resume_id = filter["resumeId"]["$eq"]
        self.vectors = {k: v for k, v in self.vectors.items() if v["metadata"]["resumeId"] != resume_id}


@pytest.fixture(scope="function", autouse=True)
def setup_database():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def offline_token_counter(monkeypatch):
    """Whitespace token counts, so tests never fetch the BPE encoding file."""
    monkeypatch.setattr(chunking, "count_tokens", lambda text: len(text.split()))


@pytest.fixture(scope="function")
def db_session():
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def fake_index():
    return FakeIndex()


@pytest.fixture
def vector_store(fake_index):
    return VectorStore(index=fake_index)


@pytest.fixture
def blob_storage():
    """Same directory the app serves under /files."""
    return BlobStorage(settings.storage)


@pytest.fixture
def make_resume(db_session):
    """Insert a resume row directly."""
    def _make_resume(file_name="resume.txt", extracted_text="Skills: Python. Experience: 5 years.", file_url=None,
                     created_at=None):
        resume = Resume(file_name=file_name, extracted_text=extracted_text, file_url=file_url, file_type="text/plain")
        if created_at is not None:
            resume.created_at = created_at
        db_session.add(resume)
        db_session.commit()
        db_session.refresh(resume)
        return resume
    return _make_resume


@pytest.fixture
def make_evaluation(db_session):
    def _make_evaluation(resume, fit_score=40):
        evaluation = Evaluation(
            resume_id=resume.id,
            criteria={"role": "Dev", "skills": ["Python"], "job_description": "Build things"},
            fit_score=fit_score,
            missing_skills=[],
            feedback="old",
            raw_response={}
        )
        db_session.add(evaluation)
        db_session.commit()
        db_session.refresh(evaluation)
        return evaluation
    return _make_evaluation


@pytest.fixture(scope="function")
def client(fake_llm, fake_embedder, vector_store, blob_storage):
    """TestClient wired to the test database and the in-process fakes."""
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    app.dependency_overrides[get_embedding_service] = lambda: fake_embedder
    app.dependency_overrides[get_vector_store] = lambda: vector_store
    app.dependency_overrides[get_blob_storage] = lambda: blob_storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def parse_sse(body: str):
    """Decode a text/event-stream body into a list of event payloads."""
    return [json.loads(line[len("data: "):]) for line in body.splitlines() if line.startswith("data: ")]


@pytest.fixture
def sse():
    return parse_sse
