"""View binding for the profile management console.

The console only reads a profile document that already exists; it never
validates or persists it. Saving and logging out are not handled here.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from cvbot.core.errors import ValidationAppError
from cvbot.schemas.profile import ConsoleTab, ConsoleView, OverviewStats, PersonalSummary

logger = logging.getLogger(__name__)

CONSOLE_TABS: tuple[tuple[str, str], ...] = (
    ("overview", "Overview"),
    ("personal", "Personal Info"),
    ("experience", "Experience"),
    ("education", "Education"),
    ("certifications", "Certifications"),
    ("skills", "Skills"),
    ("contact", "Contact"),
    ("media", "Media"),
)


def _section(profile: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = profile.get(key)
    return value if isinstance(value, Mapping) else {}


def _count(profile: Mapping[str, Any], section: str, field: str) -> int:
    items = _section(profile, section).get(field)
    return len(items) if isinstance(items, list) else 0


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def build_console_view(profile: Mapping[str, Any]) -> ConsoleView:
    """Build the tab list, overview counters and personal summary.

    Missing or malformed sections count as empty.

    Raises:
        ValidationAppError: If ``profile`` is not a JSON object.
    """
    if not isinstance(profile, Mapping):
        raise ValidationAppError(code="invalid_profile", message="Profile must be a JSON object")

    metadata = _section(profile, "metadata")
    personal = _section(profile, "personalInfo")

    overview = OverviewStats(
        positions=_count(profile, "workExperience", "positions"),
        certifications=_count(profile, "certifications", "certifications"),
        skills=_count(profile, "technicalSkills", "skills"),
        degrees=_count(profile, "education", "degrees"),
        last_updated=_text(metadata.get("lastUpdated")),
        version=_text(metadata.get("version")),
    )

    logger.info(
        "console.view_built",
        extra={
            "profile_endpoint": _text(metadata.get("endpoint")),
            "positions": overview.positions,
            "skills": overview.skills,
        },
    )

    return ConsoleView(
        tabs=[ConsoleTab(id=tab_id, label=label) for tab_id, label in CONSOLE_TABS],
        overview=overview,
        personal=PersonalSummary(
            full_name=_text(personal.get("fullName")),
            preferred_name=_text(personal.get("preferredName")),
            title=_text(personal.get("title")),
        ),
    )
