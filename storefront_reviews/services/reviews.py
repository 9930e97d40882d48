"""
Review admission and listing.

A review is admitted only for a caller who has ordered the product and has
not reviewed it before. Checks run in a fixed order and only the final
insert writes, so a rejected submission never leaves a row behind.
"""

import logging
from datetime import datetime, timezone

from ..errors import NotEligible, AlreadyReviewed, StoreUnavailable, Unauthenticated
from ..schemas.reviews import ReviewCreate
from ..stores import OrderStore, ProfileStore, ReviewStore

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, orders: OrderStore, reviews: ReviewStore, profiles: ProfileStore):
        self.orders = orders
        self.reviews = reviews
        self.profiles = profiles

    def submit_review(self, user: dict | None, payload: ReviewCreate) -> dict:
        """
        Admit and persist one review for the calling user.

        Raises, in this order of precedence:
          Unauthenticated  - no verified user (nothing is queried)
          NotEligible      - no order of this user contains the product
          AlreadyReviewed  - a review for (user, product) exists, or the
                             insert lost a race against the unique index
          StoreUnavailable - any Supabase failure
        """
        if not user or not user.get("id"):
            raise Unauthenticated()

        user_id = user["id"]
        product_id = payload.product_id

        if self.orders.find_order_by_user_and_product(user_id, product_id) is None:
            logger.info("Review refused, no purchase: user=%s product=%s", user_id, product_id)
            raise NotEligible()

        if self.reviews.find_review(user_id, product_id) is not None:
            logger.info("Review refused, duplicate: user=%s product=%s", user_id, product_id)
            raise AlreadyReviewed()

        try:
            created_review = self.reviews.insert_review(
                {
                    "user_id": user_id,
                    "product_id": product_id,
                    "rating": payload.rating,
                    "comment": payload.comment,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                }
            )
        except AlreadyReviewed:
            logger.info("Review refused, concurrent duplicate: user=%s product=%s", user_id, product_id)
            raise

        logger.info("Review %s admitted: user=%s product=%s", created_review.get("id"), user_id, product_id)

        # Attach current user metadata for immediate display
        created_review["user_metadata"] = {
            "full_name": user.get("name") or "You",
            "avatar_url": user.get("avatar_url"),
        }
        return created_review

    def list_reviews(self, product_id: str) -> list[dict]:
        """Reviews for a product, newest first, with author name and avatar."""
        try:
            reviews = self.reviews.list_for_product(product_id)
        except StoreUnavailable as exc:
            raise StoreUnavailable("Failed to fetch reviews") from exc

        if not reviews:
            return reviews

        user_ids = sorted({r["user_id"] for r in reviews})
        try:
            authors = self.profiles.fetch_authors(user_ids)
        except StoreUnavailable as exc:
            # Reviews are still worth showing without names
            logger.warning("Author lookup failed for product %s: %s", product_id, exc.__cause__)
            return reviews

        for review in reviews:
            profile = authors.get(review["user_id"], {})
            review["user_metadata"] = {
                "full_name": (profile.get("full_name") or "").strip() or "Anonymous",
                "avatar_url": profile.get("avatar_url"),
            }
        return reviews
