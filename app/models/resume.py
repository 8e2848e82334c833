import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    file_name = Column(String, nullable=False)
    file_url = Column(String, nullable=True)
    file_type = Column(String, nullable=True)
    extracted_text = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())

    # Relationships
    evaluations = relationship(
        "Evaluation",
        back_populates="resume",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="desc(Evaluation.created_at)",
    )

    __table_args__ = (
        Index("idx_resumes_created_at", created_at.desc()),
    )
