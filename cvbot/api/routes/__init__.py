from __future__ import annotations

from cvbot.api.routes.files import router as files_router
from cvbot.api.routes.health import router as health_router
from cvbot.api.routes.parse import router as parse_router
from cvbot.api.routes.profile import router as profile_router

__all__ = ["files_router", "health_router", "parse_router", "profile_router"]
