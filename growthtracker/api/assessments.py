# growthtracker/api/assessments.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from growthtracker.auth.permissions import AuthContext, get_auth_context
from growthtracker.core.db import get_db
from growthtracker.models.orm import AiAssessment
from growthtracker.models.schemas import AssessmentCreate, AssessmentOut
from growthtracker.services import assessment_service
from growthtracker.services.assessment_service import AssessmentError

logger = logging.getLogger("growth.api.assessments")
router = APIRouter(prefix="/api/ai-assessments", tags=["AI assessments"])


def _query(db: Session, user_id: str):
    return (
        db.query(AiAssessment)
        .filter(AiAssessment.user_id == user_id)
        .order_by(AiAssessment.created_at.desc())
    )


@router.get("", response_model=List[AssessmentOut])
def list_assessments(auth: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    return _query(db, auth.user_id).all()


@router.get("/latest", response_model=Optional[AssessmentOut])
def latest_assessment(auth: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    return _query(db, auth.user_id).first()


@router.post("", response_model=AssessmentOut, status_code=201)
def create_assessment(
    payload: AssessmentCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    responses = payload.responses
    if not responses or not isinstance(responses, dict):
        raise HTTPException(status_code=400, detail="Responses are required")

    try:
        result = assessment_service.generate_assessment(responses)
    except AssessmentError as e:
        logger.warning("assessment failed user=%s: %s", auth.user_id, e)
        raise HTTPException(status_code=502, detail=str(e))

    row = AiAssessment(
        user_id=auth.user_id,
        responses=responses,
        growth_score=result["growthScore"],
        recommendations=result["recommendations"],
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("assessment stored id=%s user=%s score=%d", row.id, auth.user_id, row.growth_score)
    return row
