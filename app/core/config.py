import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class AISettings(BaseModel):
    openrouter_api_key: Optional[str] = Field(default=os.getenv("OPENROUTER_API_KEY"))
    base_url: str = Field(default=os.getenv("AI_BASE_URL", "https://openrouter.ai/api/v1"))
    model_name: str = Field(default=os.getenv("AI_MODEL_NAME", "google/gemini-2.0-flash-001"))
    embedding_model: str = Field(default=os.getenv("AI_EMBEDDING_MODEL", "google/gemini-embedding-001"))
    timeout_seconds: int = Field(default=int(os.getenv("AI_TIMEOUT_SECONDS", "60")))
    temperature: float = 0.1
    max_output_tokens: int = 1000

class VectorSettings(BaseModel):
    pinecone_api_key: Optional[str] = Field(default=os.getenv("PINECONE_API_KEY"))
    index_name: str = Field(default=os.getenv("PINECONE_INDEX_NAME", "resume-checker"))

class StorageSettings(BaseModel):
    directory: str = Field(default=os.getenv("STORAGE_DIR", "uploads"))
    public_url: str = Field(default=os.getenv("STORAGE_PUBLIC_URL", "/files"))
    max_upload_mb: int = Field(default=int(os.getenv("MAX_UPLOAD_MB", "10")))

class TracingSettings(BaseModel):
    """Langfuse credentials. Tracing is on only when both keys are set."""
    public_key: Optional[str] = Field(default=os.getenv("LANGFUSE_PUBLIC_KEY") or None)
    secret_key: Optional[str] = Field(default=os.getenv("LANGFUSE_SECRET_KEY") or None)
    host: str = Field(default=os.getenv("LANGFUSE_HOST", "https://cloud.langfuse.com"))

    @property
    def enabled(self) -> bool:
        return bool(self.public_key and self.secret_key)

class Config(BaseModel):
    app_name: str = "Resume Checker"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./database.db")

    # External services
    ai: AISettings = AISettings()
    vector: VectorSettings = VectorSettings()
    storage: StorageSettings = StorageSettings()
    tracing: TracingSettings = TracingSettings()

    # Evaluation
    bulk_evaluation_delay_seconds: float = float(os.getenv("BULK_EVALUATION_DELAY_SECONDS", "1.0"))
    chunk_max_tokens: int = 3000
    chunk_overlap: int = 200

    # CORS — comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:3001,"
                "http://127.0.0.1:3000,http://127.0.0.1:3001",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

settings = Config()

# --- Startup Validation ---
_logger = logging.getLogger(__name__)
if settings.environment == "production":
    _critical_missing = []
    if not settings.ai.openrouter_api_key:
        _critical_missing.append("OPENROUTER_API_KEY")
    if not settings.vector.pinecone_api_key:
        _critical_missing.append("PINECONE_API_KEY")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following secrets must be set in production: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
else:
    if not settings.ai.openrouter_api_key:
        _logger.warning("⚠ OPENROUTER_API_KEY is not set — evaluation and embedding calls will fail.")
