"""Pydantic schemas for the profile console view."""

from __future__ import annotations

from typing import List

from pydantic import Field

from cvbot.schemas.files import CamelModel


class ConsoleTab(CamelModel):
    id: str
    label: str


class OverviewStats(CamelModel):
    """Counters shown on the console overview tab."""

    positions: int = 0
    certifications: int = 0
    skills: int = 0
    degrees: int = 0
    last_updated: str | None = None
    version: str | None = None


class PersonalSummary(CamelModel):
    full_name: str | None = None
    preferred_name: str | None = None
    title: str | None = None


class ConsoleView(CamelModel):
    """Read-only view model of a profile for the management console."""

    success: bool = True
    tabs: List[ConsoleTab] = Field(default_factory=list)
    overview: OverviewStats
    personal: PersonalSummary
