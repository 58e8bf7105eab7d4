"""FastAPI application factory."""

from fastapi import FastAPI

from api.actions import create_actions_router
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware


def create_app(services: dict) -> FastAPI:
    """
    App with request IDs, error handlers, and data/actions routes under /api.

    Args:
        services: Output of core.ledger.build_services()
    """
    app = FastAPI(title="Settlement Ledger")
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")

    return app
