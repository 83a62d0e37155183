"""Upload route: admin posts a batch of scraped job rows."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from job_ingest.config import AppConfig
from job_ingest.errors import InvalidBatchError
from job_ingest.ingest.orchestrator import ingest
from job_ingest.matching.dispatch import MatchingDispatcher

from .auth import AuthResult, Denied, require_admin
from .dependencies import get_config, get_db, get_dispatcher

logger = logging.getLogger("job_ingest.web.ingest")

router = APIRouter(prefix="/api")


@router.post("/upload-jobs")
async def upload_jobs(
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthResult = Depends(require_admin),
    config: AppConfig = Depends(get_config),
    dispatcher: MatchingDispatcher | None = Depends(get_dispatcher),
):
    if isinstance(auth, Denied):
        return auth.to_response()

    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({"error": "Request body must be JSON"}, status_code=400)
    if not isinstance(body, dict):
        return JSONResponse({"error": "No jobs provided"}, status_code=400)

    try:
        result = ingest(
            db,
            body.get("jobs"),
            skip_matching=bool(body.get("skip_matching", False)),
            dispatcher=dispatcher,
            config=config.ingest,
            source=body.get("source") or None,
        )
    except InvalidBatchError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except Exception as e:
        logger.error("Upload by user %d failed: %s", auth.user.id, e, exc_info=True)
        return JSONResponse({"error": str(e)}, status_code=500)

    logger.info("User %d uploaded %d rows (%d inserted)", auth.user.id, result.total, result.inserted)
    return result.to_dict()
