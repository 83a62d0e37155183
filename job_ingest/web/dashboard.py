"""Admin overview: store statistics and scheduler state."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from job_ingest.scheduler import get_scheduler_info
from job_ingest.storage.database import JobStore

from .auth import AuthResult, Denied, require_admin
from .dependencies import get_db

router = APIRouter(prefix="/api")


@router.get("/stats")
def stats(db: Session = Depends(get_db), auth: AuthResult = Depends(require_admin)):
    if isinstance(auth, Denied):
        return auth.to_response()
    data = JobStore(db).get_stats()
    data["scheduler"] = get_scheduler_info()
    return data
