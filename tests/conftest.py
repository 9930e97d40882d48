import copy
import json
import os
import threading
from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")

from fastapi.testclient import TestClient  # noqa: E402
from postgrest.exceptions import APIError  # noqa: E402

from storefront_reviews.main import app  # noqa: E402
from storefront_reviews.services.reviews import ReviewService  # noqa: E402
from storefront_reviews.stores import OrderStore, ProfileStore, ReviewStore  # noqa: E402
from storefront_reviews.supabase_client import get_supabase_client  # noqa: E402

BUYER_ID = "user-buyer"
BUYER_TOKEN = "token-buyer"
PURCHASED_PRODUCT = "prod-purchased"


class FakeQuery:
    """Just enough of the postgrest request builder for the review stores."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.filters = []
        self.payload = None
        self.order_by = None
        self.row_limit = None

    def select(self, *columns):
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def contains(self, column, value):
        if isinstance(value, str):
            value = json.loads(value)

        def matches(row):
            items = row.get(column) or []
            return all(
                any(all(item.get(k) == v for k, v in wanted.items()) for item in items)
                for wanted in value
            )

        self.filters.append(matches)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, size):
        self.row_limit = size
        return self

    def insert(self, record):
        self.op = "insert"
        self.payload = record
        return self

    def execute(self):
        return self.db.execute(self)


class FakeAuth:
    def __init__(self):
        self.users = {}

    def get_user(self, token):
        if token not in self.users:
            raise Exception("invalid JWT")
        return SimpleNamespace(user=self.users[token])


class FakeSupabase:
    """In-memory stand-in for supabase.Client with a unique index on reviews."""

    UNIQUE = {"reviews": ("user_id", "product_id")}

    def __init__(self):
        self.tables = {"orders": [], "reviews": [], "users": []}
        self.auth = FakeAuth()
        self.calls = []
        self.failures = {}
        self.hooks = {}
        self.empty_results = set()
        self._lock = threading.Lock()

    def table(self, name):
        return FakeQuery(self, name)

    def add_user(self, user_id, token, full_name=None, avatar_url=None, email=None):
        self.auth.users[token] = SimpleNamespace(
            id=user_id,
            email=email or f"{user_id}@example.com",
            user_metadata={"full_name": full_name} if full_name else {},
        )
        if full_name or avatar_url:
            self.tables["users"].append({"id": user_id, "full_name": full_name, "avatar_url": avatar_url})

    def add_order(self, user_id, *product_ids):
        self.tables["orders"].append(
            {
                "id": str(uuid4()),
                "user_id": user_id,
                "status": "delivered",
                "items": [{"product_id": pid, "name": pid, "quantity": 1, "price": 10.0} for pid in product_ids],
            }
        )

    def add_review(self, user_id, product_id, rating=4, comment="fine", created_at=None):
        self.tables["reviews"].append(
            {
                "id": str(uuid4()),
                "user_id": user_id,
                "product_id": product_id,
                "rating": rating,
                "comment": comment,
                "created_at": created_at or datetime.now(timezone.utc).isoformat(),
            }
        )

    def reviews_for(self, user_id, product_id):
        return [
            r for r in self.tables["reviews"]
            if r["user_id"] == user_id and r["product_id"] == product_id
        ]

    def execute(self, query):
        key = (query.table, query.op)
        self.calls.append(key)
        if key in self.hooks:
            self.hooks[key]()
        if key in self.failures:
            raise self.failures[key]
        if key in self.empty_results:
            return SimpleNamespace(data=[])

        if query.op == "insert":
            return SimpleNamespace(data=[self._insert(query.table, query.payload)])

        rows = [r for r in self.tables[query.table] if all(f(r) for f in query.filters)]
        if query.order_by:
            column, desc = query.order_by
            rows.sort(key=lambda r: r[column], reverse=desc)
        if query.row_limit is not None:
            rows = rows[: query.row_limit]
        return SimpleNamespace(data=copy.deepcopy(rows))

    def _insert(self, table, record):
        with self._lock:
            columns = self.UNIQUE.get(table)
            if columns and any(
                all(row.get(c) == record.get(c) for c in columns) for row in self.tables[table]
            ):
                raise APIError(
                    {
                        "message": 'duplicate key value violates unique constraint "reviews_user_product_key"',
                        "code": "23505",
                        "hint": None,
                        "details": "Key (user_id, product_id) already exists.",
                    }
                )
            row = {"id": str(uuid4()), "created_at": datetime.now(timezone.utc).isoformat(), **record}
            self.tables[table].append(row)
            return copy.deepcopy(row)


@pytest.fixture()
def supabase():
    fake = FakeSupabase()
    fake.add_user(BUYER_ID, BUYER_TOKEN, full_name="Ama Mensah", avatar_url="https://cdn.example.com/ama.png")
    fake.add_order(BUYER_ID, PURCHASED_PRODUCT, "prod-extra")
    return fake


@pytest.fixture()
def service(supabase):
    return ReviewService(
        orders=OrderStore(supabase),
        reviews=ReviewStore(supabase),
        profiles=ProfileStore(supabase),
    )


@pytest.fixture()
def buyer():
    return {"id": BUYER_ID, "email": "buyer@example.com", "name": "Ama Mensah", "avatar_url": None}


@pytest.fixture()
def client(supabase):
    app.dependency_overrides[get_supabase_client] = lambda: supabase
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {BUYER_TOKEN}"}
