# shopsync/main.py
from fastapi import FastAPI

from .api.routes import router as api_router
from .config import Settings
from .db import init_db, make_engine, make_session_factory
from .scheduler import create_scheduler
from .sync import build_orchestrator
from .utils import logger


def create_app(settings: Settings = None, engine=None, orchestrator=None) -> FastAPI:
    settings = settings or Settings()
    engine = engine or make_engine(settings)
    orchestrator = orchestrator or build_orchestrator(settings, engine)

    app = FastAPI(title="catalog-sync")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.orchestrator = orchestrator
    app.state.scheduler = None
    app.include_router(api_router)

    @app.on_event("startup")
    def on_startup():
        # tables are created up front; there is no migration tool
        init_db(engine)
        if settings.schedule_enabled:
            app.state.scheduler = create_scheduler(orchestrator, settings.interval_minutes)
            app.state.scheduler.start()
            logger.info("Scheduler started: sync every %d min", settings.interval_minutes)

    @app.on_event("shutdown")
    def on_shutdown():
        if app.state.scheduler is not None:
            app.state.scheduler.shutdown(wait=False)

    return app
