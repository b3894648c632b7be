from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from timegrid.api.v1.teachers.router import router as teachers_router
from timegrid.api.v1.timetables.router import router as timetables_router
from timegrid.core.config import settings
from timegrid.core.logging_config import configure_logging


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Timegrid Timetable Engine")

    # CORS: allow the timetable builder frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(timetables_router)
    app.include_router(teachers_router)

    return app


app = create_app()
