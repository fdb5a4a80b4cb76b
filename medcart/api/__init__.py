# medcart/api/__init__.py
from fastapi import FastAPI
from medcart.api.routers import carts, promotions
from medcart.api.routers.health import router as health_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="Medical Cart Service",
        version="1.0.0",
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(promotions.router)
    app.include_router(carts.router)

    return app
