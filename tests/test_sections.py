# =============================================================================
# tests/test_sections.py - Section completeness
# =============================================================================

import asyncio

import pytest

from app.core.errors import Forbidden
from app.modules.sections.service import SectionStatusService, is_filled


@pytest.fixture
def service(db):
    return SectionStatusService(db)


def status_for(service, project_id, caller):
    return asyncio.run(service.get_section_status(project_id, caller))


def test_is_filled():
    assert is_filled("x")
    assert not is_filled("   \n")
    assert not is_filled(None)
    assert not is_filled("")


def test_empty_project_has_nothing_filled(service, project, member):
    status = status_for(service, project["id"], member)
    assert status.project_id == project["id"]
    assert not status.treatment.has_synopsis
    assert not status.treatment.has_plot_points
    assert not status.business.has_goals
    assert not status.design.is_started
    assert not status.feedback.is_started


def test_filled_sections(service, db, project, member):
    db.seed("project_treatments", {"project_id": project["id"], "synopsis": "A heist.", "tagline": "  "})
    db.seed("project_business_details", {"project_id": project["id"], "goals_economic": "Break even"})
    db.seed("project_plot_points", {"project_id": project["id"], "description": "Opening", "order_index": 0})
    db.seed("project_tech_specs", {"project_id": project["id"]})

    status = status_for(service, project["id"], member)
    assert status.treatment.has_synopsis
    assert not status.treatment.has_tagline
    assert status.treatment.has_plot_points
    assert not status.treatment.has_scenarios
    assert status.business.has_goals
    assert not status.business.has_audience
    assert status.technology.is_started
    assert not status.functional.is_started


def test_failing_probe_counts_as_not_filled(service, db, project, member):
    db.seed("project_treatments", {"project_id": project["id"], "synopsis": "A heist."})
    db.seed("project_design_specs", {"project_id": project["id"]})
    db.fail_on("project_treatments")

    status = status_for(service, project["id"], member)
    assert not status.treatment.has_synopsis
    assert status.design.is_started


def test_requires_project_membership(service, project, outsider):
    with pytest.raises(Forbidden):
        status_for(service, project["id"], outsider)
