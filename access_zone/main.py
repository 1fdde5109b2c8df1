import uvicorn
from fastapi import FastAPI

from access_zone.api.errors import register_exception_handlers
from access_zone.api.routes.account import router as account_router
from access_zone.api.routes.admin_promo_codes import router as admin_promo_codes_router
from access_zone.api.routes.admin_redemptions import router as admin_redemptions_router
from access_zone.api.routes.admin_subscriptions import router as admin_subscriptions_router
from access_zone.api.routes.admin_users import router as admin_users_router
from access_zone.api.routes.health import router as health_router
from access_zone.api.routes.tasks import router as tasks_router
from access_zone.core.config import get_settings
from access_zone.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)

    app = FastAPI(
        title="Premium Access Zone API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(account_router)
    app.include_router(tasks_router)
    app.include_router(admin_redemptions_router)
    app.include_router(admin_promo_codes_router)
    app.include_router(admin_subscriptions_router)
    app.include_router(admin_users_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "access_zone.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
