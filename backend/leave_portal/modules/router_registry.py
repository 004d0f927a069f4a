"""Central router registry for module-oriented composition."""
from __future__ import annotations

from fastapi import FastAPI

from leave_portal.routers import auth, leave

ALL_ROUTERS = [auth.router, leave.router]


def include_all_routers(app: FastAPI) -> None:
    for router in ALL_ROUTERS:
        app.include_router(router)
