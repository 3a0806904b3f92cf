"""
Shared fixtures: an in-memory stand-in for the Hygraph GraphQL API and a TestClient that signs requests in
as a chosen user. The fake understands the documents built by school_api.services.operations.
"""
import copy
import itertools
import re

import pytest

try:
    from fastapi.testclient import TestClient
    from school_api.api.deps import get_current_user, get_hygraph
    from school_api.config import settings
    from school_api.main import app
    from school_api.middleware import rate_limiter
    from school_api.schemas.auth import CurrentUser
    from school_api.schemas.common import UserRole
    from school_api.services import operations
    _API_DEPS_LOADED = True
except ImportError:
    _API_DEPS_LOADED = False
    TestClient = app = get_current_user = get_hygraph = settings = rate_limiter = None  # type: ignore[misc, assignment]
    CurrentUser = UserRole = operations = None  # type: ignore[misc, assignment]

_ROOT_FIELD = re.compile(r"\{\s*(\w+)\s*\(")


def _models() -> dict:
    out = {}
    for value in vars(operations).values():
        if isinstance(value, operations.Model):
            out[value.name] = value
    return out


def _order_key(value):
    return (value is None, value if value is not None else "")


class FakeHygraph:
    """
    In-memory Hygraph. Records live in stores keyed by model name; relations are kept as {"id": ...}
    and expanded two levels deep on read so nested where clauses and owner lookups work.
    """

    def __init__(self):
        self.models = _models()
        self.stores: dict[str, dict[str, dict]] = {name: {} for name in self.models}
        self.calls: list[tuple[str, dict]] = []
        self.cas_conflicts = 0
        self._ids = itertools.count(1)

    # ----- seeding / inspection -----

    def add(self, model: str, record: dict) -> dict:
        record = dict(record)
        record.setdefault("id", f"{model.lower()}-{next(self._ids)}")
        self.stores[model][record["id"]] = record
        return self.get(model, record["id"])

    def get(self, model: str, record_id: str) -> dict | None:
        record = self.stores[model].get(record_id)
        return self._expand(record) if record else None

    def all(self, model: str) -> list[dict]:
        return [self._expand(r) for r in self.stores[model].values()]

    def ops(self) -> list[str]:
        return [root for root, _ in self.calls]

    # ----- client interface -----

    def query(self, document: str, variables: dict | None = None) -> dict:
        return self._execute(document, variables or {})

    def mutate(self, document: str, variables: dict | None = None) -> dict:
        return self._execute(document, variables or {})

    def _execute(self, document: str, variables: dict) -> dict:
        root = _ROOT_FIELD.search(document).group(1)
        self.calls.append((root, copy.deepcopy(variables)))
        for name, model in self.models.items():
            if root == f"updateMany{name}s":
                return {root: {"count": self._update_many(name, variables["where"], variables["data"])}}
            if root == f"create{name}":
                return {root: self._create(name, variables["data"])}
            if root == f"update{name}":
                return {root: self._update(name, variables["id"], variables["data"])}
            if root == f"delete{name}":
                removed = self.stores[name].pop(variables["id"], None)
                return {root: {"id": removed["id"]} if removed else None}
            if root == f"{model.plural}Connection":
                return {root: {"aggregate": {"count": len(self._select(name, variables.get("where")))}}}
            if root == model.plural:
                rows = self._select(name, variables.get("where"), variables.get("orderBy"))
                skip, first = variables.get("skip") or 0, variables.get("first")
                rows = rows[skip:skip + first] if first is not None else rows[skip:]
                return {root: rows}
            if root == model.singular:
                rows = self._select(name, variables.get("where"))
                return {root: rows[0] if rows else None}
        raise AssertionError(f"Unknown root field {root}")

    # ----- storage -----

    def _find(self, record_id: str) -> dict | None:
        for store in self.stores.values():
            if record_id in store:
                return store[record_id]
        return None

    def _expand(self, record: dict, depth: int = 2) -> dict:
        out = {}
        for key, value in record.items():
            if isinstance(value, dict) and set(value) == {"id"}:
                target = self._find(value["id"])
                out[key] = self._expand(target, depth - 1) if target and depth > 0 else dict(value)
            elif isinstance(value, list) and value and all(isinstance(v, dict) and set(v) == {"id"} for v in value):
                out[key] = [
                    self._expand(self._find(v["id"]), depth - 1) if self._find(v["id"]) and depth > 0 else dict(v)
                    for v in value
                ]
            else:
                out[key] = copy.deepcopy(value)
        return out

    def _apply(self, record: dict, data: dict) -> None:
        for key, value in data.items():
            if isinstance(value, dict) and "connect" in value:
                target = value["connect"]
                if isinstance(target, list):
                    refs = record.setdefault(key, [])
                    for item in target:
                        ref_id = (item.get("where") or item)["id"]
                        if all(r["id"] != ref_id for r in refs):
                            refs.append({"id": ref_id})
                else:
                    record[key] = {"id": target["id"]}
            elif isinstance(value, dict) and "disconnect" in value:
                gone = {item["id"] for item in value["disconnect"]}
                record[key] = [r for r in record.get(key) or [] if r["id"] not in gone]
            else:
                record[key] = copy.deepcopy(value)

    def _create(self, name: str, data: dict) -> dict:
        record = {"id": f"{name.lower()}-{next(self._ids)}"}
        self._apply(record, data)
        self.stores[name][record["id"]] = record
        return self._expand(record)

    def _update(self, name: str, record_id: str, data: dict) -> dict | None:
        record = self.stores[name].get(record_id)
        if record is None:
            return None
        self._apply(record, data)
        return self._expand(record)

    def _update_many(self, name: str, where: dict, data: dict) -> int:
        if self.cas_conflicts:
            self.cas_conflicts -= 1
            return 0
        matched = [r["id"] for r in self._select(name, where)]
        for record_id in matched:
            self._apply(self.stores[name][record_id], data)
        return len(matched)

    def _select(self, name: str, where: dict | None, order_by: str | None = None) -> list[dict]:
        rows = [self._expand(r) for r in self.stores[name].values()]
        rows = [r for r in rows if _matches(r, where or {})]
        if order_by:
            field, _, direction = order_by.rpartition("_")
            rows.sort(key=lambda r: _order_key(r.get(field)), reverse=direction == "DESC")
        return rows


def _matches(record: dict, where: dict) -> bool:
    for key, cond in where.items():
        if cond is None:
            continue
        if key == "OR":
            if not any(_matches(record, c) for c in cond):
                return False
        elif key.endswith("_contains_some"):
            if not set(record.get(key[: -len("_contains_some")]) or []) & set(cond):
                return False
        elif key.endswith("_contains"):
            if str(cond).lower() not in str(record.get(key[: -len("_contains")]) or "").lower():
                return False
        elif key.endswith("_gte") or key.endswith("_lte"):
            value = record.get(key[:-4])
            if value is None:
                return False
            if key.endswith("_gte") and value < cond:
                return False
            if key.endswith("_lte") and value > cond:
                return False
        elif isinstance(cond, dict):
            value = record.get(key)
            if not isinstance(value, dict) or not _matches(value, cond):
                return False
        elif record.get(key) != cond:
            return False
    return True


def as_current_user(record: dict) -> "CurrentUser":
    return CurrentUser(
        uid=record["uid"],
        email=record.get("email"),
        role=UserRole(record["role"]),
        hygraph_id=record["id"],
        display_name=record.get("displayName"),
    )


class ApiClient:
    """TestClient plus `login(user_record)` / `logout()` that swap the get_current_user override."""

    def __init__(self, client: "TestClient"):
        self.http = client

    def login(self, record: dict) -> "CurrentUser":
        user = as_current_user(record)
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    def logout(self) -> None:
        app.dependency_overrides.pop(get_current_user, None)

    def __getattr__(self, name):
        return getattr(self.http, name)


@pytest.fixture
def hygraph():
    if not _API_DEPS_LOADED:
        pytest.skip("fastapi/httpx not installed")
    return FakeHygraph()


@pytest.fixture
def users(hygraph):
    """One AppUser per role plus a second teacher and a second student."""
    def make(uid, role, name):
        return hygraph.add("AppUser", {
            "uid": uid,
            "email": f"{uid}@school.example.com",
            "displayName": name,
            "role": role,
            "isActive": True,
            "dateCreated": "2024-01-01T00:00:00Z",
        })

    return {
        "super_admin": make("clerk-super", "SUPER_ADMIN", "Super Admin"),
        "admin": make("clerk-admin", "ADMIN", "Admin User"),
        "teacher": make("clerk-teacher", "TEACHER", "Teacher One"),
        "other_teacher": make("clerk-teacher-2", "TEACHER", "Teacher Two"),
        "student": make("clerk-student", "STUDENT", "Student One"),
        "other_student": make("clerk-student-2", "STUDENT", "Student Two"),
    }


@pytest.fixture
def api(hygraph, monkeypatch):
    """TestClient wired to the fake Hygraph, with the rate limiter off. Call api.login(...) to authenticate."""
    if not _API_DEPS_LOADED:
        pytest.skip("fastapi/httpx not installed")
    monkeypatch.setattr(settings, "rate_limit_per_minute", 0)
    monkeypatch.setattr(settings, "clerk_dev_bypass", False)
    app.dependency_overrides[get_hygraph] = lambda: hygraph
    try:
        with TestClient(app) as c:
            yield ApiClient(c)
    finally:
        app.dependency_overrides.pop(get_hygraph, None)
        app.dependency_overrides.pop(get_current_user, None)
        rate_limiter.reset()
