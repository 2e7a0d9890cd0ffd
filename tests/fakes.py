# =============================================================================
# tests/fakes.py - In-memory Supabase client
# =============================================================================
# Implements the slice of the supabase-py surface the services use:
# table() query builders, rpc() for the functions in supabase/migrations,
# storage buckets and auth.get_user(). Constraints that matter to the
# services (unique keys, cascades, the restrict on projects.owner_team_id)
# are emulated so conflict paths can be exercised.
# =============================================================================

import copy
import re
import threading
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Set, Tuple


class FakeAPIError(Exception):
    """Stands in for postgrest.exceptions.APIError (carries a Postgres code)."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


_TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _comparable(value: Any) -> Any:
    if isinstance(value, str) and _TIMESTAMP.match(value):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return value


# Tables whose rows carry a generated uuid primary key
_TABLES_WITH_ID = {
    "teams", "team_invitations", "projects", "project_treatments",
    "project_business_details", "project_design_specs", "project_functional_specs",
    "project_tech_specs", "project_plot_points", "project_user_scenarios",
    "project_feedback_log", "project_assets",
}

_PROJECT_CHILD_TABLES = [
    "project_treatments", "project_business_details", "project_design_specs",
    "project_functional_specs", "project_tech_specs", "project_plot_points",
    "project_user_scenarios", "project_feedback_log", "project_assets",
]

_SINGLE_ROW_PER_PROJECT = {
    "project_treatments", "project_business_details", "project_design_specs",
    "project_functional_specs", "project_tech_specs",
}


class FakeResponse:
    def __init__(self, data: Any, count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.columns = "*"
        self.count_mode: Optional[str] = None
        self.payload: Any = None
        self.on_conflict: Optional[str] = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.orders: List[Tuple[str, bool]] = []
        self.limit_count: Optional[int] = None
        self.offset_count = 0
        self.single_mode: Optional[str] = None

    # -- operations -----------------------------------------------------------

    def select(self, columns: str = "*", count: Optional[str] = None, **_: Any) -> "FakeQuery":
        self.operation = "select"
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, payload: Any, **_: Any) -> "FakeQuery":
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload: Dict[str, Any], **_: Any) -> "FakeQuery":
        self.operation = "update"
        self.payload = payload
        return self

    def upsert(self, payload: Any, on_conflict: Optional[str] = None, **_: Any) -> "FakeQuery":
        self.operation = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        return self

    def delete(self, **_: Any) -> "FakeQuery":
        self.operation = "delete"
        return self

    # -- filters ----------------------------------------------------------------

    def _add(self, column: str, predicate: Callable[[Any], bool]) -> "FakeQuery":
        self.filters.append(lambda row: predicate(row.get(column)))
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        return self._add(column, lambda v: v == value)

    def neq(self, column: str, value: Any) -> "FakeQuery":
        return self._add(column, lambda v: v != value)

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        allowed = list(values)
        return self._add(column, lambda v: v in allowed)

    def is_(self, column: str, value: Any) -> "FakeQuery":
        expected = None if value in (None, "null") else value
        return self._add(column, lambda v: v is expected or v == expected)

    def lt(self, column: str, value: Any) -> "FakeQuery":
        return self._add(column, lambda v: v is not None and _comparable(v) < _comparable(value))

    def lte(self, column: str, value: Any) -> "FakeQuery":
        return self._add(column, lambda v: v is not None and _comparable(v) <= _comparable(value))

    def gt(self, column: str, value: Any) -> "FakeQuery":
        return self._add(column, lambda v: v is not None and _comparable(v) > _comparable(value))

    def gte(self, column: str, value: Any) -> "FakeQuery":
        return self._add(column, lambda v: v is not None and _comparable(v) >= _comparable(value))

    # -- modifiers --------------------------------------------------------------

    def order(self, column: str, desc: bool = False, **_: Any) -> "FakeQuery":
        self.orders.append((column, desc))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self.limit_count = count
        return self

    def offset(self, count: int) -> "FakeQuery":
        self.offset_count = count
        return self

    def single(self) -> "FakeQuery":
        self.single_mode = "single"
        return self

    def maybe_single(self) -> "FakeQuery":
        self.single_mode = "maybe_single"
        return self

    # -- execution ----------------------------------------------------------------

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(f(row) for f in self.filters)

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        names = [c.strip() for c in self.columns.split(",") if c.strip()]
        return {n: copy.deepcopy(row.get(n)) for n in names}

    def execute(self) -> FakeResponse:
        self.db._maybe_fail(self.table_name, self.operation)
        with self.db.lock:
            handler = getattr(self, f"_execute_{self.operation}")
            return handler()

    def _execute_select(self) -> FakeResponse:
        rows = [r for r in self.db.rows(self.table_name) if self._matches(r)]
        for column, desc in reversed(self.orders):
            rows.sort(key=lambda r: (r.get(column) is None, _comparable(r.get(column))), reverse=desc)
        total = len(rows)
        rows = rows[self.offset_count:]
        if self.limit_count is not None:
            rows = rows[:self.limit_count]
        data = [self._project(r) for r in rows]
        count = total if self.count_mode else None
        if self.single_mode:
            if not data:
                if self.single_mode == "single":
                    raise FakeAPIError("JSON object requested, multiple (or no) rows returned", code="PGRST116")
                return FakeResponse(None, count)
            return FakeResponse(data[0], count)
        return FakeResponse(data, count)

    def _execute_insert(self) -> FakeResponse:
        records = self.payload if isinstance(self.payload, list) else [self.payload]
        inserted = [self.db.insert_row(self.table_name, r) for r in records]
        return FakeResponse([copy.deepcopy(r) for r in inserted])

    def _execute_update(self) -> FakeResponse:
        updated = []
        for row in self.db.rows(self.table_name):
            if self._matches(row):
                row.update(copy.deepcopy(self.payload))
                updated.append(copy.deepcopy(row))
        return FakeResponse(updated)

    def _execute_upsert(self) -> FakeResponse:
        keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
        records = self.payload if isinstance(self.payload, list) else [self.payload]
        result = []
        for record in records:
            existing = next(
                (r for r in self.db.rows(self.table_name) if all(r.get(k) == record.get(k) for k in keys)),
                None,
            )
            if existing is not None:
                existing.update(copy.deepcopy(record))
                result.append(copy.deepcopy(existing))
            else:
                result.append(copy.deepcopy(self.db.insert_row(self.table_name, record)))
        return FakeResponse(result)

    def _execute_delete(self) -> FakeResponse:
        doomed = [r for r in self.db.rows(self.table_name) if self._matches(r)]
        for row in doomed:
            self.db.check_delete_allowed(self.table_name, row)
        for row in doomed:
            self.db.delete_row(self.table_name, row)
        return FakeResponse([copy.deepcopy(r) for r in doomed])


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: Dict[str, Any]):
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        self.db._maybe_fail(f"rpc:{self.name}", "rpc")
        func = getattr(self.db, f"_rpc_{self.name}")
        with self.db.lock:
            snapshot = copy.deepcopy(self.db.tables)
            try:
                return FakeResponse(func(**self.params))
            except Exception:
                # Postgres functions run in one transaction
                self.db.tables = snapshot
                raise


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path: str, file: bytes, file_options: Optional[Dict[str, str]] = None):
        if self.storage.fail_upload:
            raise FakeAPIError("storage unavailable")
        self.storage.objects[(self.name, path)] = {"content": file, "options": file_options or {}}
        return SimpleNamespace(path=path)

    def remove(self, paths: List[str]):
        if self.storage.fail_remove:
            raise FakeAPIError("storage unavailable")
        for path in paths:
            self.storage.objects.pop((self.name, path), None)
        return [{"name": p} for p in paths]

    def create_signed_url(self, path: str, expires_in: int):
        if path in self.storage.unsignable:
            raise FakeAPIError(f"Object not found: {path}")
        return {"signedURL": f"https://storage.test/{self.name}/{path}?expires_in={expires_in}"}


class FakeStorage:
    def __init__(self):
        self.objects: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.fail_upload = False
        self.fail_remove = False
        self.unsignable: Set[str] = set()

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeAuth:
    def __init__(self):
        # auth.users, keyed by id
        self.users: Dict[str, Dict[str, Any]] = {}
        self.users_by_token: Dict[str, Dict[str, Any]] = {}

    def add_user(self, user_id: str, email: Optional[str], full_name: Optional[str] = None):
        self.users[user_id] = {"id": user_id, "email": email, "full_name": full_name}

    def add_token(self, token: str, user_id: str, email: Optional[str], full_name: Optional[str] = None):
        self.add_user(user_id, email, full_name)
        self.users_by_token[token] = self.users[user_id]

    def get_user(self, jwt: Optional[str] = None):
        user = self.users_by_token.get(jwt)
        if user is None:
            raise FakeAPIError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(
            id=user["id"],
            email=user["email"],
            user_metadata={"full_name": user["full_name"]} if user["full_name"] else {},
        ))

    def sign_out(self):
        return None


class FakeSupabase:
    def __init__(self):
        self.lock = threading.RLock()
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.storage = FakeStorage()
        self.auth = FakeAuth()
        self.failures: Set[Tuple[str, str]] = set()
        # Raise inside transition_team_invitation after the membership insert
        self.fail_transition_after_membership = False

    # -- public surface ----------------------------------------------------------

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)

    # -- test helpers --------------------------------------------------------------

    def fail_on(self, table: str, operation: str = "select"):
        """Make every `operation` on `table` raise, like an unreachable store."""
        self.failures.add((table, operation))

    def _maybe_fail(self, table: str, operation: str):
        if (table, operation) in self.failures or (table, "*") in self.failures:
            raise FakeAPIError(f"connection refused ({operation} {table})")

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def seed(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        with self.lock:
            return copy.deepcopy(self.insert_row(table, record))

    def find(self, table: str, **filters: Any) -> List[Dict[str, Any]]:
        with self.lock:
            return [
                copy.deepcopy(r) for r in self.rows(table)
                if all(r.get(k) == v for k, v in filters.items())
            ]

    # -- constraint emulation --------------------------------------------------------

    def insert_row(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        row = copy.deepcopy(record)
        if table in _TABLES_WITH_ID:
            row.setdefault("id", str(uuid.uuid4()))
        if table == "project_feedback_log":
            row.setdefault("logged_at", _now_iso())
        else:
            row.setdefault("created_at", _now_iso())
        if table in ("teams", "projects") or table in _PROJECT_CHILD_TABLES:
            row.setdefault("updated_at", row.get("created_at") or _now_iso())
        if table == "team_invitations":
            row.setdefault("status", "pending")
        if table == "team_memberships":
            row.setdefault("role", "member")
        self._check_unique(table, row)
        self.rows(table).append(row)
        return row

    def _check_unique(self, table: str, row: Dict[str, Any]):
        existing = self.rows(table)

        def clash(pred: Callable[[Dict[str, Any]], bool], what: str):
            if any(pred(r) for r in existing):
                raise FakeAPIError(f"duplicate key value violates unique constraint ({what})", code="23505")

        if "id" in row:
            clash(lambda r: r.get("id") == row["id"], f"{table}_pkey")
        if table == "team_memberships":
            clash(lambda r: r["team_id"] == row["team_id"] and r["user_id"] == row["user_id"], "team_memberships_pkey")
        if table == "team_invitations":
            clash(lambda r: r["token"] == row["token"], "team_invitations_token_key")
            if row.get("status") == "pending":
                clash(
                    lambda r: r["status"] == "pending" and r["team_id"] == row["team_id"]
                    and r["invited_user_email"].lower() == row["invited_user_email"].lower(),
                    "team_invitations_one_pending_idx",
                )
        if table in _SINGLE_ROW_PER_PROJECT:
            clash(lambda r: r["project_id"] == row["project_id"], f"{table}_project_id_key")

    def check_delete_allowed(self, table: str, row: Dict[str, Any]):
        if table == "teams" and any(p["owner_team_id"] == row["id"] for p in self.rows("projects")):
            raise FakeAPIError(
                'update or delete on table "teams" violates foreign key constraint "projects_owner_team_id_fkey"',
                code="23503",
            )

    def delete_row(self, table: str, row: Dict[str, Any]):
        self.tables[table] = [r for r in self.rows(table) if r is not row]
        if table == "teams":
            for child in ("team_memberships", "team_invitations"):
                self.tables[child] = [r for r in self.rows(child) if r["team_id"] != row["id"]]
        if table == "projects":
            for child in _PROJECT_CHILD_TABLES:
                self.tables[child] = [r for r in self.rows(child) if r["project_id"] != row["id"]]

    # -- Postgres functions (supabase/migrations) -----------------------------------

    def _rpc_create_team_with_owner(self, p_name: str, p_owner_user_id: str):
        team = self.insert_row("teams", {"name": p_name.strip(), "owner_user_id": p_owner_user_id})
        self.insert_row("team_memberships", {"team_id": team["id"], "user_id": p_owner_user_id, "role": "owner"})
        return [copy.deepcopy(team)]

    def _rpc_transition_team_invitation(self, p_invitation_id: str, p_from_status: str,
                                        p_to_status: str, p_acting_user_id: Optional[str] = None):
        inv = next((r for r in self.rows("team_invitations") if r["id"] == p_invitation_id), None)
        if inv is None:
            return [{"applied": False, "current_status": None, "membership_created": False, "refused_reason": None}]
        if inv["status"] != p_from_status:
            return [{"applied": False, "current_status": inv["status"], "membership_created": False, "refused_reason": None}]

        membership_created = False
        if p_to_status == "accepted":
            if _comparable(inv["expires_at"]) <= datetime.now(timezone.utc):
                return [{"applied": False, "current_status": inv["status"], "membership_created": False, "refused_reason": "expired"}]
            acting = self.auth.users.get(p_acting_user_id)
            if not acting or (acting["email"] or "").lower() != inv["invited_user_email"].lower():
                return [{"applied": False, "current_status": inv["status"], "membership_created": False, "refused_reason": "wrong_user"}]
            already = any(
                m["team_id"] == inv["team_id"] and m["user_id"] == p_acting_user_id
                for m in self.rows("team_memberships")
            )
            if not already:
                self.insert_row("team_memberships", {
                    "team_id": inv["team_id"], "user_id": p_acting_user_id, "role": inv["role"],
                })
                membership_created = True
            if self.fail_transition_after_membership:
                raise FakeAPIError("could not serialize access due to concurrent update", code="40001")
            inv.update({"status": "accepted", "accepted_at": _now_iso(), "accepted_by_user_id": p_acting_user_id})
        else:
            inv["status"] = p_to_status
        return [{"applied": True, "current_status": p_to_status, "membership_created": membership_created, "refused_reason": None}]


class RecordingEmailSender:
    """Captures invitation emails instead of calling the provider."""

    def __init__(self, success: bool = True, error: Optional[str] = None):
        self.success = success
        self.error = error
        self.sent: List[Dict[str, Any]] = []

    def send_invitation_email(self, to: str, invite_link: str, team_name: str, inviter_name: Optional[str] = None):
        from app.modules.invitations.email import EmailSendResult

        self.sent.append({"to": to, "invite_link": invite_link, "team_name": team_name, "inviter_name": inviter_name})
        return EmailSendResult(self.success, None if self.success else (self.error or "provider down"))
