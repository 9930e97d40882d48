"""
Supabase-backed stores for orders, reviews and author profiles.

Every call either returns plain row dicts or raises a ReviewError; raw
client exceptions never leave this module.
"""

import json
import logging

from postgrest.exceptions import APIError
from supabase import Client

from .errors import AlreadyReviewed, StoreUnavailable

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class OrderStore:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def find_order_by_user_and_product(self, user_id: str, product_id: str) -> dict | None:
        """Return one order of this user that has a line item for product_id."""
        try:
            response = (
                self.supabase.table("orders")
                .select("id, user_id, items")
                .eq("user_id", user_id)
                # jsonb containment: items @> '[{"product_id": ...}]'
                .contains("items", json.dumps([{"product_id": product_id}]))
                .limit(1)
                .execute()
            )
        except Exception as exc:
            logger.exception("Order lookup failed for user %s, product %s", user_id, product_id)
            raise StoreUnavailable() from exc

        return response.data[0] if response.data else None


class ReviewStore:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def find_review(self, user_id: str, product_id: str) -> dict | None:
        try:
            response = (
                self.supabase.table("reviews")
                .select("id")
                .eq("user_id", user_id)
                .eq("product_id", product_id)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            logger.exception("Review lookup failed for user %s, product %s", user_id, product_id)
            raise StoreUnavailable() from exc

        return response.data[0] if response.data else None

    def insert_review(self, record: dict) -> dict:
        """
        Insert a review row and return it as stored.
        The unique index on (user_id, product_id) turns a lost race into AlreadyReviewed.
        """
        try:
            response = self.supabase.table("reviews").insert(record).execute()
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise AlreadyReviewed() from exc
            logger.exception("Review insert rejected: %s", exc.message)
            raise StoreUnavailable() from exc
        except Exception as exc:
            logger.exception("Review insert failed")
            raise StoreUnavailable() from exc

        if not response.data:
            logger.error("Review insert returned no row for user %s", record.get("user_id"))
            raise StoreUnavailable()
        return response.data[0]

    def list_for_product(self, product_id: str) -> list[dict]:
        try:
            response = (
                self.supabase.table("reviews")
                .select("*")
                .eq("product_id", product_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as exc:
            logger.exception("Listing reviews failed for product %s", product_id)
            raise StoreUnavailable() from exc

        return response.data or []


class ProfileStore:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def fetch_authors(self, user_ids: list[str]) -> dict[str, dict]:
        """Map user id -> {id, full_name, avatar_url} for the given ids."""
        if not user_ids:
            return {}
        try:
            response = (
                self.supabase.table("users")
                .select("id, full_name, avatar_url")
                .in_("id", user_ids)
                .execute()
            )
        except Exception as exc:
            raise StoreUnavailable() from exc

        return {p["id"]: p for p in response.data or []}
