from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal.application import Services, build_services, configure_services
from portal.core.logging import configure_logging
from portal.core.settings import Settings
from portal.routes import admin


def create_app(services: Services | None = None) -> FastAPI:
    app = FastAPI(title="Portal Admin API", version="0.1.0")

    if services is None:
        services = build_services(Settings.from_env())
    configure_services(services)
    settings = services.settings
    configure_logging(settings.log_level, json_output=settings.log_json)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(admin.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Portal Admin API",
                "docs": "/docs",
                "access": "/api/admin/access",
            }
        )

    return app


app = create_app()
