# =============================================================================
# tests/test_projects.py - Projects owned by teams
# =============================================================================

import pytest

from app.core.errors import Forbidden, NotFound, ValidationError
from app.modules.projects.schemas import ProjectCreate, ProjectUpdate
from app.modules.projects.service import ProjectService


@pytest.fixture
def service(db):
    return ProjectService(db)


class TestProjects:
    def test_member_creates_project(self, service, team, member):
        project = service.create_project(ProjectCreate(team_id=team["id"], name=" Season Two "), member)
        assert project.name == "Season Two"
        assert project.owner_team_id == team["id"]

    def test_outsider_cannot_create_in_team(self, service, db, team, outsider):
        with pytest.raises(Forbidden):
            service.create_project(ProjectCreate(team_id=team["id"], name="Sneaky"), outsider)
        assert db.find("projects", owner_team_id=team["id"]) == []

    def test_empty_name(self, service, team, member):
        with pytest.raises(ValidationError) as exc_info:
            service.create_project(ProjectCreate(team_id=team["id"], name=""), member)
        assert exc_info.value.message == "Project name cannot be empty."

    def test_get_project_with_team(self, service, project, team, member):
        detail = service.get_project(project["id"], member)
        assert detail.project.id == project["id"]
        assert detail.team.id == team["id"]
        assert detail.team.name == "Studio North"

    def test_get_distinguishes_missing_from_forbidden(self, service, project, outsider):
        with pytest.raises(NotFound):
            service.get_project("no-such-project", outsider)
        with pytest.raises(Forbidden):
            service.get_project(project["id"], outsider)

    def test_list_team_projects(self, service, project, team, member, outsider):
        assert [p.id for p in service.list_team_projects(team["id"], member)] == [project["id"]]
        with pytest.raises(Forbidden):
            service.list_team_projects(team["id"], outsider)

    def test_member_renames(self, service, project, member):
        assert service.rename_project(project["id"], ProjectUpdate(name="Finale"), member).name == "Finale"

    def test_only_owner_deletes(self, service, db, project, owner, admin):
        with pytest.raises(Forbidden):
            service.delete_project(project["id"], admin)
        db.seed("project_plot_points", {"project_id": project["id"], "description": "Opening", "order_index": 0})

        assert service.delete_project(project["id"], owner)
        assert db.find("projects", id=project["id"]) == []
        assert db.find("project_plot_points", project_id=project["id"]) == []
