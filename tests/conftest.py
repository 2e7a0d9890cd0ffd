# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Sets environment variables before the app is imported (app.config builds
# its settings at import time) and provides the shared fixtures: an in-memory
# Supabase double, callers, a seeded team/project and an HTTP client wired
# to the double.
# =============================================================================

import os
import uuid
from datetime import datetime, timedelta, timezone

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("APP_BASE_URL", "https://app.test/")
os.environ.setdefault("INVITE_RATE_LIMIT", "1000/minute")
os.environ.setdefault("RATE_LIMIT", "1000/minute")
os.environ.setdefault("ENABLE_INVITATION_SWEEPER", "false")

import pytest

from app.modules.auth.schemas import Caller
from tests.fakes import FakeSupabase, RecordingEmailSender


def make_caller(email: str, full_name: str = None) -> Caller:
    return Caller(id=str(uuid.uuid4()), email=email, full_name=full_name)


def registered(db: FakeSupabase, caller: Caller) -> Caller:
    """Give the caller a row in the fake auth.users."""
    db.auth.add_user(caller.id, caller.email, caller.full_name)
    return caller


def iso_in(**delta) -> str:
    return (datetime.now(timezone.utc) + timedelta(**delta)).isoformat()


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def owner(db):
    return registered(db, make_caller("owner@example.com", "Olive Owner"))


@pytest.fixture
def member(db):
    return registered(db, make_caller("member@example.com"))


@pytest.fixture
def admin(db):
    return registered(db, make_caller("admin@example.com"))


@pytest.fixture
def outsider(db):
    return registered(db, make_caller("outsider@example.com"))


@pytest.fixture
def invitee(db):
    return registered(db, make_caller("Invitee@Example.com"))


@pytest.fixture
def team(db, owner, member, admin):
    """Team owned by `owner` with `member` and `admin` as members."""
    team = db.seed("teams", {"name": "Studio North", "owner_user_id": owner.id})
    db.seed("team_memberships", {"team_id": team["id"], "user_id": owner.id, "role": "owner"})
    db.seed("team_memberships", {"team_id": team["id"], "user_id": member.id, "role": "member"})
    db.seed("team_memberships", {"team_id": team["id"], "user_id": admin.id, "role": "admin"})
    return team


@pytest.fixture
def project(db, team):
    return db.seed("projects", {"name": "Pilot Episode", "owner_team_id": team["id"]})


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def seed_invitation(db, team, owner):
    """Factory inserting an invitation row directly."""

    def _seed(email="invitee@example.com", status="pending", role="member", expires_at=None, token=None):
        return db.seed("team_invitations", {
            "team_id": team["id"],
            "invited_by_user_id": owner.id,
            "invited_user_email": email,
            "role": role,
            "status": status,
            "token": token or f"tok_{uuid.uuid4().hex}",
            "expires_at": expires_at or iso_in(days=7),
        })

    return _seed


@pytest.fixture
def client(db, owner, member, admin, outsider, invitee, email_sender):
    """TestClient whose Supabase clients are the in-memory double.

    Bearer tokens "owner-token", "member-token", "admin-token",
    "outsider-token" and "invitee-token" resolve to the matching callers.
    """
    from fastapi.testclient import TestClient

    from app.database.supabase_client import get_auth_supabase, get_supabase
    from app.main import app
    from app.modules.invitations.routes import get_invitation_service
    from app.modules.invitations.service import InvitationService

    for name, caller in [("owner", owner), ("member", member), ("admin", admin),
                         ("outsider", outsider), ("invitee", invitee)]:
        db.auth.add_token(f"{name}-token", caller.id, caller.email, caller.full_name)

    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_auth_supabase] = lambda: db
    app.dependency_overrides[get_invitation_service] = lambda: InvitationService(db, email_sender=email_sender)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth(name: str) -> dict:
    return {"Authorization": f"Bearer {name}-token"}
