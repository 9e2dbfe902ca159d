from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.database import Database
from core.errors import register_exception_handlers
from core.logging import configure_logging, get_logger
from core.settings import Settings, get_settings
from modules.materials.router import router as materials_router
from modules.orders.router import cutting_router, purchase_router
from modules.tooling.router import router as tooling_router

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.json_logs)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.db = Database(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(tooling_router)
    app.include_router(materials_router)
    app.include_router(cutting_router)
    app.include_router(purchase_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.on_event("startup")
    def on_startup():
        app.state.db.create_all()
        logger.info("%s started", settings.app_name)

    @app.on_event("shutdown")
    def on_shutdown():
        app.state.db.dispose()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
