from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class ValidationError(AppException):
    """Missing or malformed request input."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details
        )

class NotFoundError(AppException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND"
        )

class LLMError(AppException):
    def __init__(self, message: str, status_code: int = 500, error_code: str = "LLM_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=error_code,
            details=details
        )

class LLMAuthError(LLMError):
    def __init__(self, message: str = "Invalid LLM API key. Please check your OPENROUTER_API_KEY configuration."):
        super().__init__(message, status_code=401, error_code="LLM_AUTH_FAILED")

class LLMQuotaError(LLMError):
    def __init__(self, message: str = "LLM API quota exceeded. Please try again later."):
        super().__init__(message, status_code=429, error_code="LLM_QUOTA_EXCEEDED")

class InvalidLLMResponseError(LLMError):
    """The model answered, but not with the JSON contract we asked for."""
    def __init__(self, raw_response: str):
        super().__init__(
            f"LLM returned invalid JSON format: {raw_response[:200]}...",
            status_code=500,
            error_code="LLM_INVALID_RESPONSE",
            details={"raw_response": raw_response[:1000]}
        )

class EmbeddingError(AppException):
    def __init__(self, message: str = "Failed to generate embedding"):
        super().__init__(
            message=message,
            status_code=502,
            error_code="EMBEDDING_FAILED"
        )

class VectorStoreError(AppException):
    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=502,
            error_code="VECTOR_STORE_ERROR"
        )

class StorageError(AppException):
    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=500,
            error_code="STORAGE_ERROR"
        )
