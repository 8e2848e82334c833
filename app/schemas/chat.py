from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Literal, Dict, Any


class ChatMessage(BaseModel):
    role: Literal["user", "bot", "assistant"]
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: Optional[List[ChatMessage]] = None
    resume_count: Optional[int] = Field(default=None, alias="resumeCount", ge=0)


class ExtractedCriteria(BaseModel):
    role: str
    skills: List[str]


class ChatEvaluation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resume_id: str = Field(alias="resumeId")
    resume_name: str = Field(alias="resumeName")
    score: int
    feedback: str
    missing_skills: List[str]
    status: Literal["pass", "fail"]
    is_resume: bool = True
    error: Optional[str] = None
    extracted_criteria: ExtractedCriteria = Field(alias="extractedCriteria")


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    intent: Literal["greeting", "evaluation", "off_topic"]
    evaluations: List[ChatEvaluation] = []
    criteria: Optional[Dict[str, Any]] = None
