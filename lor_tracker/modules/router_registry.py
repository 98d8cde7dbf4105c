"""Routers grouped by feature area, mounted in a fixed order."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from fastapi import APIRouter, FastAPI

from lor_tracker.modules.auth_users.router import ROUTERS as AUTH_USERS_ROUTERS
from lor_tracker.modules.profiles.router import ROUTERS as PROFILE_ROUTERS
from lor_tracker.modules.submissions.router import ROUTERS as SUBMISSION_ROUTERS

logger = logging.getLogger(__name__)

MODULES: dict[str, list[APIRouter]] = {
    "auth_users": AUTH_USERS_ROUTERS,
    "profiles": PROFILE_ROUTERS,
    "submissions": SUBMISSION_ROUTERS,
}


def include_all_routers(app: FastAPI, modules: Optional[Iterable[str]] = None) -> None:
    selected = list(modules) if modules is not None else list(MODULES)
    unknown = [name for name in selected if name not in MODULES]
    if unknown:
        raise ValueError(f"Unknown router modules: {', '.join(unknown)}")
    for name in selected:
        for router in MODULES[name]:
            app.include_router(router)
        logger.debug("router_module_mounted %s", name)
