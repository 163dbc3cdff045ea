import copy
import logging
import os
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

# Settings are read at import time; configure before importing the app
os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_KEY", "anon-key")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("S3_BUCKET_NAME", "groupsnap-photos-test")

import boto3
import pytest
from moto import mock_aws
from postgrest.exceptions import APIError

from app.modules.auth.service import clear_auth_cache
from app.modules.photos.s3_storage import S3Storage

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

BUCKET = "groupsnap-photos-test"
REGION = "us-east-1"

UNIQUE_KEYS = {
    "groups": [("join_code",)],
    "group_members": [("user_id", "group_id")],
    "users": [("id",)],
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class FakeQuery:
    """Subset of the postgrest query builder used by the services"""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.limit_n = None
        self.single_mode = None

    def select(self, *columns):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def upsert(self, payload):
        self.op = "upsert"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def maybe_single(self):
        self.single_mode = "maybe"
        return self

    def single(self):
        self.single_mode = "single"
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        self.db.calls.append((self.table, self.op))
        failure = self.db.failures.get((self.table, self.op))
        if failure is not None:
            raise failure
        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            return SimpleNamespace(data=self._insert(rows, self.payload))
        if self.op == "upsert":
            return SimpleNamespace(data=self._upsert(rows, self.payload))
        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=copy.deepcopy(removed))

        found = [copy.deepcopy(r) for r in rows if self._matches(r)]
        if self.order_by:
            column, desc = self.order_by
            found.sort(key=lambda r: r[column], reverse=desc)
        if self.limit_n is not None:
            found = found[: self.limit_n]
        if self.single_mode == "maybe":
            return SimpleNamespace(data=found[0]) if found else None
        if self.single_mode == "single":
            if not found:
                raise APIError({"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows returned"})
            return SimpleNamespace(data=found[0])
        return SimpleNamespace(data=found)

    def _defaults(self, row):
        row = dict(row)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", _now_iso())
        if self.table == "photos":
            row.setdefault("uploaded_at", _now_iso())
        return row

    def _violates(self, rows, row):
        for key in UNIQUE_KEYS.get(self.table, []):
            if any(all(r.get(k) == row.get(k) for k in key) for r in rows):
                return True
        return False

    def _insert(self, rows, payload):
        new_rows = payload if isinstance(payload, list) else [payload]
        created = []
        for raw in new_rows:
            row = self._defaults(raw)
            if self._violates(rows, row):
                raise APIError({
                    "code": "23505",
                    "message": f'duplicate key value violates unique constraint on "{self.table}"',
                })
            rows.append(row)
            created.append(copy.deepcopy(row))
        return created

    def _upsert(self, rows, payload):
        for row in rows:
            if row["id"] == payload["id"]:
                row.update(payload)
                return [copy.deepcopy(row)]
        return self._insert(rows, payload)


class FakeAdmin:
    def __init__(self, auth: "FakeAuth"):
        self.auth = auth
        self.revoked = []

    def sign_out(self, jwt, scope="global"):
        if jwt not in self.auth.tokens:
            raise Exception("invalid JWT: unable to parse or verify signature")
        self.revoked.append(jwt)
        del self.auth.tokens[jwt]


class FakeAuth:
    def __init__(self):
        self.accounts = {}
        self.tokens = {}
        self.listeners = []
        self.admin = FakeAdmin(self)

    def _session(self, user):
        token = f"token-{user.id}"
        self.tokens[token] = user
        return SimpleNamespace(access_token=token, refresh_token=f"refresh-{user.id}", user=user)

    def register(self, email, password="secret"):
        user = SimpleNamespace(id=str(uuid.uuid4()), email=email, created_at=_now_iso())
        self.accounts[email] = (password, user)
        return self._session(user)

    def sign_up(self, credentials):
        if credentials["email"] in self.accounts:
            raise Exception("User already registered")
        session = self.register(credentials["email"], credentials["password"])
        return SimpleNamespace(user=session.user, session=session)

    def sign_in_with_password(self, credentials):
        account = self.accounts.get(credentials["email"])
        if not account or account[0] != credentials["password"]:
            raise Exception("Invalid login credentials")
        session = self._session(account[1])
        for listener in self.listeners:
            listener("SIGNED_IN", session)
        return SimpleNamespace(user=account[1], session=session)

    def get_user(self, jwt=None):
        user = self.tokens.get(jwt)
        if user is None:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def sign_out(self):
        for listener in self.listeners:
            listener("SIGNED_OUT", None)

    def on_auth_state_change(self, callback):
        self.listeners.append(callback)
        return SimpleNamespace(unsubscribe=lambda: self.listeners.remove(callback))


class FakeSupabase:
    """In-memory stand-in for supabase.Client"""

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.failures = {}
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def fail_on(self, table, op, error=None):
        self.failures[(table, op)] = error or APIError({"code": "500", "message": f"{op} on {table} failed"})

    def rows(self, table):
        return self.tables.get(table, [])


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture(autouse=True)
def _clear_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def s3_client():
    with mock_aws():
        client = boto3.client("s3", region_name=REGION)
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def storage(s3_client):
    return S3Storage(s3_client=s3_client, bucket_name=BUCKET, region=REGION)


@pytest.fixture
def code_sequence():
    """Factory for code generators that replay the given codes in order"""
    def factory(*codes):
        it = iter(codes)
        return lambda: next(it)
    return factory
