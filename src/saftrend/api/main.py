"""FastAPI application factory."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import Session, SQLModel

from saftrend.api.routes import saf as saf_routes
from saftrend.db.engine import get_engine, get_session


def create_app(engine=None) -> FastAPI:
    """
    Build and return the FastAPI app.

    Args:
        engine: Engine to serve from. Defaults to the module-level engine,
                resolved lazily on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables on startup (idempotent)
        SQLModel.metadata.create_all(engine if engine is not None else get_engine())
        yield

    app = FastAPI(
        title="SAF API",
        description="Aerobic fitness trend (speed adjusted for heart rate)",
        version="0.1.0",
        lifespan=lifespan,
    )

    if engine is not None:
        def override_session():
            with Session(engine) as s:
                yield s

        app.dependency_overrides[get_engine] = lambda: engine
        app.dependency_overrides[get_session] = override_session

    app.include_router(saf_routes.router, prefix="/saf", tags=["saf"])

    return app


# Module-level app instance for uvicorn
app = create_app()
