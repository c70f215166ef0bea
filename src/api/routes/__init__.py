"""API route registration."""

from fastapi import FastAPI

from src.api.routes import catalog, directory, inventory, ledger, system


def include_api_routes(app: FastAPI) -> None:
    """Attach all API routers to the application."""

    app.include_router(system.router)
    app.include_router(directory.router)
    app.include_router(inventory.router)
    app.include_router(catalog.router)
    app.include_router(ledger.wishlist_router)
    app.include_router(ledger.booking_router)
