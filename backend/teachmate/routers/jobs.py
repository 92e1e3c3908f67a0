"""Poll background workflow jobs."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teachmate.database import get_db
from teachmate.middleware.auth import Account, get_current_user
from teachmate.schemas.job import JobResponse
from teachmate.services import jobs

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.get("/{job_id}", response_model=JobResponse)
def get_job(job_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    return jobs.get_job(db, job_id)
