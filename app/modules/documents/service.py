from supabase import Client
from app.modules.auth.schemas import Caller
from app.modules.documents.schemas import (
    DocumentKind, ListKind, DocumentResponse, ListItemResponse,
    FeedbackCreate, FeedbackResponse
)
from app.core.authorization import AuthorizationService
from app.core.errors import (
    DependencyFailure, NotFound, ValidationError,
    UNIQUE_VIOLATION, error_code_of
)
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

# kind -> (table, writable text columns)
DOCUMENT_TABLES = {
    DocumentKind.TREATMENT: ("project_treatments", (
        "tagline", "backstory_context", "synopsis", "characterization_attitude",
    )),
    DocumentKind.BUSINESS: ("project_business_details", (
        "goals_user", "goals_creative", "goals_economic", "success_indicators",
        "target_audience", "user_need", "business_models",
    )),
    DocumentKind.DESIGN: ("project_design_specs", (
        "aesthetic", "branding", "style_guide", "media_styles", "assets_list",
        "branding_guidelines_intro",
    )),
    DocumentKind.FUNCTIONAL: ("project_functional_specs", ()),
    DocumentKind.TECHNOLOGY: ("project_tech_specs", ()),
}

# kind -> (table, label used in messages)
LIST_TABLES = {
    ListKind.PLOT_POINTS: ("project_plot_points", "Plot point"),
    ListKind.SCENARIOS: ("project_user_scenarios", "Scenario"),
}

OTHER_PLATFORM = "other"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _required_text(value: Optional[str], label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{label} cannot be empty.")
    return cleaned


class DocumentService:
    """Per-project planning documents. Every operation requires project membership."""

    def __init__(self, supabase: Client, authz: Optional[AuthorizationService] = None):
        self.supabase = supabase
        self.authz = authz or AuthorizationService(supabase)

    # ------------------------------------------------------------------
    # One-row documents
    # ------------------------------------------------------------------

    def _to_document(self, project_id: str, kind: DocumentKind, row: Optional[Dict[str, Any]]) -> DocumentResponse:
        _, columns = DOCUMENT_TABLES[kind]
        return DocumentResponse(
            project_id=project_id,
            kind=kind,
            exists=row is not None,
            fields={c: (row or {}).get(c) for c in columns},
            updated_at=(row or {}).get("updated_at"),
        )

    def _load_document(self, project_id: str, kind: DocumentKind) -> Optional[Dict[str, Any]]:
        table, _ = DOCUMENT_TABLES[kind]
        try:
            result = self.supabase.table(table)\
                .select("*")\
                .eq("project_id", project_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading {kind.value} for project {project_id}: {e}")
            raise DependencyFailure(f"Failed to load {kind.value}")
        return result.data[0] if result.data else None

    def get_document(self, project_id: str, kind: DocumentKind, caller: Caller) -> DocumentResponse:
        self.authz.require_project_member(caller.id, project_id)
        return self._to_document(project_id, kind, self._load_document(project_id, kind))

    def update_document(self, project_id: str, kind: DocumentKind, fields: Dict[str, Optional[str]],
                        caller: Caller) -> DocumentResponse:
        """Upsert the given text fields. Unknown fields are rejected; empty content clears a field."""
        table, columns = DOCUMENT_TABLES[kind]
        if not fields:
            raise ValidationError("No fields to update")
        unknown = sorted(set(fields) - set(columns))
        if unknown:
            raise ValidationError(
                f"Invalid field for {kind.value}: {', '.join(unknown)}",
                details={"allowed": list(columns)},
            )
        self.authz.require_project_member(caller.id, project_id)

        record = {"project_id": project_id, "updated_at": _now()}
        record.update(fields)
        try:
            result = self.supabase.table(table)\
                .upsert(record, on_conflict="project_id")\
                .execute()
        except Exception as e:
            logger.error(f"Error saving {kind.value} for project {project_id}: {e}")
            raise DependencyFailure(f"Failed to save {kind.value}")
        row = result.data[0] if result.data else self._load_document(project_id, kind)
        return self._to_document(project_id, kind, row)

    def start_document(self, project_id: str, kind: DocumentKind, caller: Caller) -> DocumentResponse:
        """Create the document row if it does not exist yet; starting twice is a no-op."""
        table, _ = DOCUMENT_TABLES[kind]
        self.authz.require_project_member(caller.id, project_id)
        existing = self._load_document(project_id, kind)
        if existing:
            return self._to_document(project_id, kind, existing)
        try:
            result = self.supabase.table(table).insert({"project_id": project_id}).execute()
        except Exception as e:
            if error_code_of(e) == UNIQUE_VIOLATION:
                # Started concurrently
                return self._to_document(project_id, kind, self._load_document(project_id, kind))
            logger.error(f"Error starting {kind.value} for project {project_id}: {e}")
            raise DependencyFailure(f"Failed to start {kind.value}")
        logger.info(f"{kind.value} started for project {project_id} by {caller.id}")
        return self._to_document(project_id, kind, result.data[0] if result.data else None)

    # ------------------------------------------------------------------
    # Ordered lists
    # ------------------------------------------------------------------

    def list_items(self, project_id: str, kind: ListKind, caller: Caller) -> List[ListItemResponse]:
        table, label = LIST_TABLES[kind]
        self.authz.require_project_member(caller.id, project_id)
        try:
            result = self.supabase.table(table)\
                .select("*")\
                .eq("project_id", project_id)\
                .order("order_index")\
                .execute()
            return [ListItemResponse(**row) for row in (result.data or [])]
        except Exception as e:
            logger.error(f"Error loading {table} for project {project_id}: {e}")
            raise DependencyFailure(f"Failed to load {label.lower()}s")

    def add_item(self, project_id: str, kind: ListKind, description: Optional[str], caller: Caller) -> ListItemResponse:
        """Append an item; its order_index is the number of items already present."""
        table, label = LIST_TABLES[kind]
        description = _required_text(description, f"{label} description")
        self.authz.require_project_member(caller.id, project_id)
        try:
            counted = self.supabase.table(table)\
                .select("id", count="exact")\
                .eq("project_id", project_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error counting {table} for project {project_id}: {e}")
            raise DependencyFailure("Database error determining order.")
        order_index = counted.count if counted.count is not None else len(counted.data or [])
        try:
            result = self.supabase.table(table).insert({
                "project_id": project_id,
                "description": description,
                "order_index": order_index,
            }).execute()
        except Exception as e:
            logger.error(f"Error adding to {table} for project {project_id}: {e}")
            raise DependencyFailure(f"Failed to add {label.lower()}")
        if not result.data:
            raise DependencyFailure(f"Failed to add {label.lower()}")
        return ListItemResponse(**result.data[0])

    def update_item(self, project_id: str, kind: ListKind, item_id: str, description: Optional[str],
                    caller: Caller) -> ListItemResponse:
        table, label = LIST_TABLES[kind]
        description = _required_text(description, f"{label} description")
        self.authz.require_project_member(caller.id, project_id)
        try:
            # Scoped by project_id so an id from another project matches nothing
            result = self.supabase.table(table)\
                .update({"description": description, "updated_at": _now()})\
                .eq("id", item_id)\
                .eq("project_id", project_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating {table} item {item_id}: {e}")
            raise DependencyFailure(f"Failed to update {label.lower()}")
        if not result.data:
            raise NotFound(f"{label} not found")
        return ListItemResponse(**result.data[0])

    def delete_item(self, project_id: str, kind: ListKind, item_id: str, caller: Caller) -> bool:
        table, label = LIST_TABLES[kind]
        self.authz.require_project_member(caller.id, project_id)
        try:
            result = self.supabase.table(table)\
                .delete()\
                .eq("id", item_id)\
                .eq("project_id", project_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting {table} item {item_id}: {e}")
            raise DependencyFailure(f"Failed to delete {label.lower()}")
        if not result.data:
            raise NotFound(f"{label} not found")
        return True

    # ------------------------------------------------------------------
    # Feedback log
    # ------------------------------------------------------------------

    def list_feedback(self, project_id: str, caller: Caller) -> List[FeedbackResponse]:
        self.authz.require_project_member(caller.id, project_id)
        try:
            result = self.supabase.table("project_feedback_log")\
                .select("*")\
                .eq("project_id", project_id)\
                .order("logged_at", desc=True)\
                .execute()
            return [FeedbackResponse(**row) for row in (result.data or [])]
        except Exception as e:
            logger.error(f"Error loading feedback for project {project_id}: {e}")
            raise DependencyFailure("Failed to load feedback")

    def add_feedback(self, project_id: str, feedback: FeedbackCreate, caller: Caller) -> FeedbackResponse:
        shared_item = _required_text(feedback.shared_item_description, "Shared item description")
        platform = (feedback.platform_source or "").strip()
        if platform == OTHER_PLATFORM and (feedback.custom_platform_source or "").strip():
            platform = feedback.custom_platform_source.strip()
        platform = _required_text(platform, "Platform source")
        received = _required_text(feedback.feedback_received, "Feedback")
        self.authz.require_project_member(caller.id, project_id)
        try:
            result = self.supabase.table("project_feedback_log").insert({
                "project_id": project_id,
                "logged_by_user_id": caller.id,
                "shared_item_description": shared_item,
                "platform_source": platform,
                "feedback_received": received,
                "logged_at": _now(),
            }).execute()
        except Exception as e:
            logger.error(f"Error logging feedback for project {project_id}: {e}")
            raise DependencyFailure("Failed to log feedback")
        if not result.data:
            raise DependencyFailure("Failed to log feedback")
        return FeedbackResponse(**result.data[0])
