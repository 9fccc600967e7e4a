from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body

from cvbot.schemas.profile import ConsoleView
from cvbot.services.profile_console import build_console_view

router = APIRouter(prefix="/api", tags=["Profile"])


@router.post("/profile/console", response_model=ConsoleView)
def profile_console(profile: Dict[str, Any] = Body(...)) -> ConsoleView:
    """Build the management console view of a profile document.

    The profile is read only; nothing is stored.
    """
    return build_console_view(profile)
