"""Matching routes: manual runs, run history and the cron hook."""

import hmac
import logging
import threading
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from job_ingest.config import AppConfig
from job_ingest.matching.engine import run_matching, run_scheduled_matching
from job_ingest.matching.matcher import get_scorer
from job_ingest.models.match_run import RUN_OK
from job_ingest.storage.database import JobStore

from .auth import AuthResult, Denied, require_admin
from .dependencies import get_config, get_db

logger = logging.getLogger("job_ingest.web.matching")

router = APIRouter(prefix="/api")


@router.post("/matching/run")
async def start_matching(
    request: Request,
    auth: AuthResult = Depends(require_admin),
    config: AppConfig = Depends(get_config),
):
    if isinstance(auth, Denied):
        return auth.to_response()

    try:
        body = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    try:
        candidate_id = int(body["candidate_id"]) if body.get("candidate_id") is not None else None
        job_ids = [int(j) for j in body["job_ids"]] if body.get("job_ids") is not None else None
        jobs_since = datetime.fromisoformat(body["jobs_since"]) if body.get("jobs_since") else None
    except (TypeError, ValueError) as e:
        return JSONResponse({"error": f"Invalid matching parameters: {e}"}, status_code=400)

    thread = threading.Thread(
        target=run_matching,
        args=(request.app.state.session_factory,),
        kwargs={
            "scorer": get_scorer(config.matching.scorer),
            "job_ids": job_ids,
            "candidate_id": candidate_id,
            "jobs_since": jobs_since,
            "mode": "manual",
            "trigger": f"user:{auth.user.id}",
            "max_matches_per_candidate": config.matching.max_matches_per_candidate,
        },
        daemon=True,
    )
    thread.start()
    logger.info("User %d started a manual matching run", auth.user.id)

    return JSONResponse(
        {"status": "started", "message": "Matching is running in the background. Check run history for results."},
        status_code=202,
    )


@router.get("/matching/runs")
def match_runs(
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthResult = Depends(require_admin),
):
    if isinstance(auth, Denied):
        return auth.to_response()

    try:
        limit = int(request.query_params.get("limit", 20))
    except ValueError:
        limit = 20
    limit = max(1, min(limit, 100))

    runs = JobStore(db).recent_runs(limit)
    return {"runs": [run.to_dict() for run in runs]}


def _verify_cron_auth(request: Request, secret: str) -> bool:
    if not secret:
        logger.error("[CRON] CRON_SECRET is not set - rejecting request")
        return False
    expected = f"Bearer {secret}"
    if not hmac.compare_digest(request.headers.get("authorization", ""), expected):
        logger.error("[CRON] Invalid authorization header")
        return False
    return True


@router.get("/cron/match")
def cron_match(request: Request, config: AppConfig = Depends(get_config)):
    if not _verify_cron_auth(request, config.auth.cron_secret):
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    run = run_scheduled_matching(request.app.state.session_factory, config, trigger="cron")
    if run is None:
        return JSONResponse({"ok": False, "error": "Matching run could not be recorded"}, status_code=500)
    status_code = 200 if run.status == RUN_OK else 500
    return JSONResponse({"ok": run.status == RUN_OK, "run": run.to_dict()}, status_code=status_code)
