"""
REST API main application.
Entry point for the FastAPI REST server.
"""

from fastapi import FastAPI

from shared.config.settings import settings
from rest_api.core.cors import configure_cors
from rest_api.core.exception_handlers import register_exception_handlers
from rest_api.core.lifespan import lifespan
from rest_api.core.middlewares import register_middlewares
from rest_api.routers.orders import router as orders_router
from rest_api.routers.public import health_router


app = FastAPI(
    title="Bakery POS API",
    description="Counter orders, payment settlement and pickup queue for the bakery.",
    version="1.0.0",
    lifespan=lifespan,
)

# Middlewares (CORS registered last so it runs first)
register_middlewares(app)
configure_cors(app)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(orders_router)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )
