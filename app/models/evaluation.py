import uuid

from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, JSON, CheckConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.models.resume import _utcnow


class Evaluation(Base):
    __tablename__ = "evaluations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    resume_id = Column(String(36), ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)
    criteria = Column(JSON, nullable=False)  # {role, skills, job_description}
    fit_score = Column(Integer, nullable=False)
    missing_skills = Column(JSON, nullable=False, default=list)
    feedback = Column(Text, nullable=False)
    raw_response = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())

    # Relationships
    resume = relationship("Resume", back_populates="evaluations")

    __table_args__ = (
        CheckConstraint("fit_score >= 0 AND fit_score <= 100", name="ck_evaluations_fit_score_range"),
        Index("idx_evaluations_created_at", created_at.desc()),
    )
