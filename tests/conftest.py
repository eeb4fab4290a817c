"""
Shared fixtures: an in-memory stand-in for the Supabase client.

FakeSupabase implements just the part of the postgrest query builder and the
storage API the services call (select/insert/update/delete with eq, in_,
is_, not_.is_, or_, order, limit) and records every write so tests can
assert on what was, or was not, written.
"""
import copy
import itertools
import random
import sys
import uuid
from pathlib import Path
from types import SimpleNamespace

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.database.storage import SupabaseStorage
from app.modules.facematch.service import FaceMatchResult
from app.scripts.seed_hints import seed_hints

PUBLIC_URL = "https://fake.supabase.co/storage/v1/object/public"

UNIQUE_KEYS = {
    "users": [("email",)],
    "image_claims": [("game_run_id", "image_name")],
}


class FakeAPIError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


class _Negated:
    def __init__(self, query):
        self.query = query

    def is_(self, column, value):
        if value == "null":
            return self.query._where(lambda r: r.get(column) is not None)
        return self.query._where(lambda r: r.get(column) != value)

    def eq(self, column, value):
        return self.query._where(lambda r: r.get(column) != value)


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.row_limit = None

    def _where(self, predicate):
        self.filters.append(predicate)
        return self

    def select(self, *columns):
        self.op = "select"
        return self

    def insert(self, rows):
        self.op = "insert"
        self.payload = rows if isinstance(rows, list) else [rows]
        return self

    def update(self, fields):
        self.op = "update"
        self.payload = fields
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        return self._where(lambda r: r.get(column) == value)

    def in_(self, column, values):
        values = list(values)
        return self._where(lambda r: r.get(column) in values)

    def is_(self, column, value):
        if value == "null":
            return self._where(lambda r: r.get(column) is None)
        return self._where(lambda r: r.get(column) == value)

    @property
    def not_(self):
        return _Negated(self)

    def or_(self, expression):
        clauses = []
        for part in expression.split(","):
            column, operator, value = part.split(".", 2)
            assert operator == "eq", f"unsupported or_ operator {operator}"
            clauses.append((column, value))
        return self._where(
            lambda r: any(r.get(c) is not None and str(r.get(c)) == v for c, v in clauses)
        )

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        failure = self.db.take_failure(self.table, self.op)
        if failure is not None:
            raise failure
        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "select":
            found = [copy.deepcopy(r) for r in rows if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                found.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
            if self.row_limit is not None:
                found = found[:self.row_limit]
            return SimpleNamespace(data=found)

        if self.op == "insert":
            # All or nothing, like a single INSERT statement
            created = []
            for payload in self.payload:
                row = copy.deepcopy(payload)
                row.setdefault("id", self.db.next_id(self.table))
                row.setdefault("created_at", f"2026-01-01T00:00:{len(rows) + len(created):02d}")
                self.db.check_unique(self.table, row, pending=created)
                created.append(row)
            rows.extend(created)
            created = copy.deepcopy(created)
            self.db.writes.append((self.table, "insert", len(created)))
            return SimpleNamespace(data=created)

        if self.op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            self.db.writes.append((self.table, "update", dict(self.payload)))
            return SimpleNamespace(data=updated)

        if self.op == "delete":
            kept = [r for r in rows if not self._matches(r)]
            deleted = [r for r in rows if self._matches(r)]
            self.db.tables[self.table] = kept
            self.db.writes.append((self.table, "delete", len(deleted)))
            return SimpleNamespace(data=deleted)

        raise AssertionError(f"unknown op {self.op}")


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    @property
    def files(self):
        return self.storage.files.setdefault(self.name, {})

    def upload(self, path, content, file_options=None):
        if path in self.files:
            raise FakeAPIError("The resource already exists", code="409")
        self.files[path] = content
        return SimpleNamespace(path=path)

    def download(self, path):
        if path not in self.files:
            raise FakeAPIError("Object not found", code="404")
        return self.files[path]

    def remove(self, paths):
        return [{"name": p} for p in paths if self.files.pop(p, None) is not None]

    def get_public_url(self, path):
        return f"{PUBLIC_URL}/{self.name}/{path}"

    def list(self, prefix="", options=None):
        entries = {}
        base = f"{prefix}/" if prefix else ""
        for key in self.files:
            if not key.startswith(base):
                continue
            rest = key[len(base):]
            if "/" in rest:
                entries.setdefault(rest.split("/", 1)[0], {"name": rest.split("/", 1)[0], "id": None})
            else:
                entries[rest] = {"name": rest, "id": str(uuid.uuid4())}
        return sorted(entries.values(), key=lambda e: e["name"])


class FakeStorage:
    def __init__(self):
        self.files = {}
        self.buckets = {}

    def from_(self, name):
        return FakeBucket(self, name)

    def list_buckets(self):
        return [SimpleNamespace(name=n, public=p) for n, p in self.buckets.items()]

    def create_bucket(self, name, options=None):
        self.buckets[name] = bool((options or {}).get("public"))

    def update_bucket(self, name, options):
        self.buckets[name] = bool(options.get("public"))


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.storage = FakeStorage()
        self.writes = []
        self.failures = {}
        self._ids = {}

    def table(self, name):
        return FakeQuery(self, name)

    def next_id(self, table):
        counter = self._ids.setdefault(table, itertools.count(1))
        value = next(counter)
        return str(uuid.UUID(int=value)) if table == "users" else value

    def check_unique(self, table, row, pending=()):
        for columns in UNIQUE_KEYS.get(table, []):
            key = tuple(row.get(c) for c in columns)
            for existing in list(self.tables.get(table, [])) + list(pending):
                if tuple(existing.get(c) for c in columns) == key:
                    raise FakeAPIError("duplicate key value violates unique constraint", code="23505")

    def fail_next(self, table, op, exc=None, skip=0):
        """Make the (skip + 1)-th next `op` on `table` raise."""
        self.failures[(table, op)] = [exc or FakeAPIError(f"{op} on {table} failed"), skip]

    def fail_unique(self, table):
        self.fail_next(table, "insert", FakeAPIError("duplicate key value violates unique constraint", code="23505"))

    def take_failure(self, table, op):
        pending = self.failures.get((table, op))
        if pending is None:
            return None
        if pending[1] > 0:
            pending[1] -= 1
            return None
        del self.failures[(table, op)]
        return pending[0]

    def writes_to(self, table):
        return [w for w in self.writes if w[0] == table]


class FakeFaceMatcher:
    """Scores come from a {selfie bytes: similarity} table; unknown selfies score 0."""

    def __init__(self, scores=None, threshold=70.0):
        self.scores = scores or {}
        self.threshold = threshold
        self.calls = []

    def compare(self, source, target):
        self.calls.append((source, target))
        score = self.scores.get(source, 0.0)
        return FaceMatchResult(is_match=score >= self.threshold, score=score)


@pytest.fixture
def db():
    supabase = FakeSupabase()
    seed_hints(supabase)
    supabase.writes.clear()
    return supabase


@pytest.fixture
def selfies(db):
    return SupabaseStorage(db, "selfies")


@pytest.fixture
def matcher():
    return FakeFaceMatcher()


@pytest.fixture
def rng():
    return random.Random(1234)


def add_user(db, name, email=None):
    """Registered user with a selfie already in the selfies bucket."""
    key = f"{name.lower()}.jpg"
    db.storage.files.setdefault("selfies", {})[key] = f"selfie-{name}".encode()
    result = db.table("users").insert({
        "email": email or f"{name.lower()}@example.com",
        "name": name,
        "major": "Undeclared",
        "selfie_url": f"{PUBLIC_URL}/selfies/{key}",
    }).execute()
    return result.data[0]


def add_photos(db, count, bucket="group-photos", prefix="auto"):
    files = db.storage.files.setdefault(bucket, {})
    files[f"{prefix}/.emptyFolderPlaceholder"] = b""
    for i in range(count):
        files[f"{prefix}/photo-{i:02d}.jpg"] = b"photo"


@pytest.fixture
def make_users(db):
    def _make(*names):
        return [add_user(db, name) for name in names]
    return _make


@pytest.fixture
def photos(db):
    add_photos(db, 10)
    return db


@pytest.fixture
def client(db, selfies, matcher):
    from fastapi.testclient import TestClient
    from app.database.supabase_client import get_supabase
    from app.main import app
    from app.modules.facematch.service import get_face_matcher
    from app.modules.users.service import get_selfie_storage

    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_selfie_storage] = lambda: selfies
    app.dependency_overrides[get_face_matcher] = lambda: matcher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def seat_teams(db):
    """Start the game with hand-picked teams instead of a random allocation run."""
    from app.modules.game.allocator import allocate_questions
    from app.modules.groups.schemas import GroupRecord, MemberSlot
    from app.modules.groups.service import GroupService

    def _seat(*teams, found=False):
        db.table("globals").insert({"id": 1, "game_has_started": True, "game_run_id": "run-1"}).execute()
        records = []
        for i, team in enumerate(teams):
            blocks = allocate_questions(len(team), [1, 2, 3, 4])
            records.append(GroupRecord(
                game_run_id="run-1",
                photo_url=f"{PUBLIC_URL}/group-photos/auto/photo-{i:02d}.jpg",
                found=found,
                slots=[
                    MemberSlot(slot=n, user_id=user["id"], question_ids=block)
                    for n, (user, block) in enumerate(zip(team, blocks), start=1)
                ],
            ))
        groups = GroupService(db).insert_groups(records)
        db.writes.clear()
        return groups
    return _seat


@pytest.fixture
def add_images(db):
    def _add(count):
        add_photos(db, count)
    return _add
