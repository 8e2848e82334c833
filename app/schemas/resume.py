from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Any, Dict, Literal

# --- CRITERIA ---

class Criteria(BaseModel):
    role: str = ""
    skills: Optional[List[str]] = None
    job_description: str = ""

    def is_complete(self) -> bool:
        """All three fields present, as required for a single evaluation."""
        return bool(self.role.strip()) and self.skills is not None and bool(self.job_description.strip())

    def has_role_or_skills(self) -> bool:
        """Lenient check used by bulk evaluation."""
        return bool(self.role.strip()) or bool(self.skills)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "skills": list(self.skills or []),
            "job_description": self.job_description,
        }

# --- RESUME SCHEMAS ---

class ResumeSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    file_name: str
    created_at: Optional[datetime] = None

class ResumeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    file_name: str
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    extracted_text: Optional[str] = None
    created_at: Optional[datetime] = None

class UploadResumeResponse(BaseModel):
    resume: ResumeResponse

# --- EVALUATION SCHEMAS ---

class EvaluationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    resume_id: str
    criteria: Dict[str, Any]
    fit_score: int
    missing_skills: List[str]
    feedback: str
    raw_response: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

class ResumeWithEvaluations(ResumeResponse):
    evaluations: List[EvaluationResponse] = []

# --- REQUEST BODIES ---
# Fields are optional so that missing input is reported by the handlers as a 400
# with the same messages the frontend already displays.

class CheckResumeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resume_id: Optional[str] = Field(default=None, alias="resumeId")
    criteria: Optional[Criteria] = None

class BulkEvaluateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resume_ids: Optional[List[str]] = Field(default=None, alias="resumeIds")
    criteria: Optional[Criteria] = None

class DeleteResumeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resume_id: Optional[str] = Field(default=None, alias="resumeId")

class DeleteEvaluationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    evaluation_id: Optional[str] = Field(default=None, alias="evaluationId")

# --- BULK STREAM EVENTS ---

class EvaluationSummary(BaseModel):
    score: int
    feedback: str
    missing_skills: List[str]
    status: Literal["pass", "fail"]

class BulkSummary(BaseModel):
    total: int
    passed: int
    failed: int
    rejected: int
    errors: int

class EvaluationProgress(BaseModel):
    """One server-sent event of the bulk evaluation stream."""
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["progress", "result", "error", "complete"]
    resume_id: str = Field(default="", alias="resumeId")
    resume_name: str = Field(default="", alias="resumeName")
    resume_url: Optional[str] = Field(default=None, alias="resumeUrl")
    message: Optional[str] = None
    evaluation: Optional[EvaluationSummary] = None
    error: Optional[str] = None
    is_not_resume: Optional[bool] = Field(default=None, alias="isNotResume")
    summary: Optional[BulkSummary] = None

    def to_sse(self) -> str:
        return f"data: {self.model_dump_json(by_alias=True, exclude_none=True)}\n\n"
