"""
Section completeness for a project.

Drives which project sub-pages are unlocked. Every probe is an independent
read, so they run concurrently. A failing probe is logged and counts as
"not filled in": this is a progress display, not an access check, so it
degrades instead of failing the request. Access itself is checked up front
and does fail closed.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from supabase import Client

from app.core.authorization import AuthorizationService
from app.modules.auth.schemas import Caller
from app.modules.sections.schemas import (
    BusinessStatus, SectionStatus, StartedStatus, TreatmentStatus
)

logger = logging.getLogger(__name__)

TREATMENT_COLUMNS = "tagline, synopsis, characterization_attitude, backstory_context"
BUSINESS_COLUMNS = "target_audience, goals_user, goals_creative, goals_economic, user_need"


def is_filled(value: Any) -> bool:
    """True for text that is non-empty after trimming whitespace."""
    return isinstance(value, str) and value.strip() != ""


class SectionStatusService:
    def __init__(self, supabase: Client, authz: Optional[AuthorizationService] = None):
        self.supabase = supabase
        self.authz = authz or AuthorizationService(supabase)

    def _fetch_row(self, table: str, columns: str, project_id: str) -> Dict[str, Any]:
        result = self.supabase.table(table)\
            .select(columns)\
            .eq("project_id", project_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else {}

    def _has_rows(self, table: str, project_id: str) -> bool:
        result = self.supabase.table(table)\
            .select("id")\
            .eq("project_id", project_id)\
            .limit(1)\
            .execute()
        return bool(result.data)

    async def _probe(self, name: str, fn: Callable[..., Any], *args: Any, default: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except Exception as e:
            logger.warning(f"Section probe {name} failed for project {args[-1]}: {e}")
            return default

    async def compute_section_status(self, project_id: str) -> SectionStatus:
        (treatment, business, plot_points, scenarios,
         design, functional, technology, feedback) = await asyncio.gather(
            self._probe("treatment", self._fetch_row, "project_treatments", TREATMENT_COLUMNS, project_id, default={}),
            self._probe("business", self._fetch_row, "project_business_details", BUSINESS_COLUMNS, project_id, default={}),
            self._probe("plot_points", self._has_rows, "project_plot_points", project_id, default=False),
            self._probe("scenarios", self._has_rows, "project_user_scenarios", project_id, default=False),
            self._probe("design", self._has_rows, "project_design_specs", project_id, default=False),
            self._probe("functional", self._has_rows, "project_functional_specs", project_id, default=False),
            self._probe("technology", self._has_rows, "project_tech_specs", project_id, default=False),
            self._probe("feedback", self._has_rows, "project_feedback_log", project_id, default=False),
        )
        return SectionStatus(
            project_id=project_id,
            treatment=TreatmentStatus(
                has_tagline=is_filled(treatment.get("tagline")),
                has_synopsis=is_filled(treatment.get("synopsis")),
                has_characters=is_filled(treatment.get("characterization_attitude")),
                has_backstory=is_filled(treatment.get("backstory_context")),
                has_plot_points=plot_points,
                has_scenarios=scenarios,
            ),
            business=BusinessStatus(
                has_audience=is_filled(business.get("target_audience")),
                has_goals=any(is_filled(business.get(c)) for c in ("goals_user", "goals_creative", "goals_economic")),
                has_user_need=is_filled(business.get("user_need")),
            ),
            design=StartedStatus(is_started=design),
            functional=StartedStatus(is_started=functional),
            technology=StartedStatus(is_started=technology),
            feedback=StartedStatus(is_started=feedback),
        )

    async def get_section_status(self, project_id: str, caller: Caller) -> SectionStatus:
        self.authz.require_project_member(caller.id, project_id)
        return await self.compute_section_status(project_id)
