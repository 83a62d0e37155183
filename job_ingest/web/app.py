"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.orm import sessionmaker
from starlette.middleware.sessions import SessionMiddleware

from job_ingest.config import AppConfig, load_config_or_default
from job_ingest.matching.dispatch import MatchingDispatcher, ThreadMatchingDispatcher
from job_ingest.matching.matcher import get_scorer
from job_ingest.models import init_db, make_engine, make_session_factory
from job_ingest.scheduler import schedule_matching, shutdown_scheduler

from .dashboard import router as dashboard_router
from .ingest import router as ingest_router
from .matching import router as matching_router


def _make_lifespan(schedule: bool):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if schedule and app.state.config.matching.schedule_enabled:
            schedule_matching(
                app.state.session_factory,
                app.state.config,
                scorer=get_scorer(app.state.config.matching.scorer),
            )

        yield

        if schedule:
            shutdown_scheduler()

    return lifespan


def create_app(
    config: AppConfig | None = None,
    session_factory: sessionmaker | None = None,
    dispatcher: MatchingDispatcher | None = None,
    schedule: bool = True,
) -> FastAPI:
    config = config or load_config_or_default()
    if session_factory is None:
        engine = make_engine(config.database.url)
        init_db(engine)
        session_factory = make_session_factory(engine)
    if dispatcher is None:
        dispatcher = ThreadMatchingDispatcher(
            session_factory,
            scorer=get_scorer(config.matching.scorer),
            max_matches_per_candidate=config.matching.max_matches_per_candidate,
        )

    app = FastAPI(title="Job Ingest", lifespan=_make_lifespan(schedule))

    # Session cookie set by the login service; we only read user_id from it
    app.add_middleware(SessionMiddleware, secret_key=config.auth.session_secret)

    app.state.config = config
    app.state.session_factory = session_factory
    app.state.dispatcher = dispatcher

    app.include_router(ingest_router)
    app.include_router(matching_router)
    app.include_router(dashboard_router)

    @app.get("/health")
    def health():
        return {"ok": True}

    return app
