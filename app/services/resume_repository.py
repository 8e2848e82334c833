from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from app.models.resume import Resume
from app.models.evaluation import Evaluation
from app.services.evaluation import EvaluationOutcome


class ResumeRepository:
    """CRUD over the resumes and evaluations tables. Each write commits."""

    @staticmethod
    def create_resume(
        db: Session,
        file_name: str,
        file_url: Optional[str],
        file_type: Optional[str],
        extracted_text: Optional[str]
    ) -> Resume:
        resume = Resume(
            file_name=file_name,
            file_url=file_url,
            file_type=file_type,
            extracted_text=extracted_text
        )
        db.add(resume)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(resume)
        return resume

    @staticmethod
    def list_resumes(db: Session, limit: Optional[int] = None) -> List[Resume]:
        query = db.query(Resume).order_by(Resume.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_resume(db: Session, resume_id: str, with_evaluations: bool = False) -> Optional[Resume]:
        query = db.query(Resume)
        if with_evaluations:
            query = query.options(selectinload(Resume.evaluations))
        return query.filter(Resume.id == resume_id).first()

    @staticmethod
    def delete_resume(db: Session, resume: Resume) -> None:
        """Evaluations first, then the resume row."""
        try:
            db.query(Evaluation).filter(Evaluation.resume_id == resume.id).delete(synchronize_session=False)
            db.delete(resume)
            db.commit()
        except Exception:
            db.rollback()
            raise

    @staticmethod
    def insert_evaluation(
        db: Session,
        resume_id: str,
        criteria: Dict[str, Any],
        outcome: EvaluationOutcome
    ) -> Evaluation:
        evaluation = Evaluation(
            resume_id=resume_id,
            criteria=criteria,
            fit_score=outcome.fit_score,
            missing_skills=outcome.missing_skills,
            feedback=outcome.feedback,
            raw_response=outcome.raw_response
        )
        db.add(evaluation)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(evaluation)
        return evaluation

    @staticmethod
    def replace_evaluation(
        db: Session,
        resume_id: str,
        criteria: Dict[str, Any],
        outcome: EvaluationOutcome
    ) -> Evaluation:
        """Delete every evaluation of the resume, then insert the new one."""
        try:
            db.query(Evaluation).filter(Evaluation.resume_id == resume_id).delete(synchronize_session=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        return ResumeRepository.insert_evaluation(db, resume_id, criteria, outcome)

    @staticmethod
    def delete_evaluation(db: Session, evaluation_id: str) -> bool:
        try:
            deleted = db.query(Evaluation).filter(Evaluation.id == evaluation_id).delete(synchronize_session=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        return deleted > 0
