"""
Review workflow errors.

Each error carries the HTTP status and the user-facing message it is rendered
with; the app-level handler in main.py turns them into {"error": message}.
"""

from fastapi import status


class ReviewError(Exception):
    """Base class for review workflow failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Something went wrong"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthenticated(ReviewError):
    """401: no verified identity for the caller"""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"


class NotEligible(ReviewError):
    """403: the caller never ordered the product"""

    status_code = status.HTTP_403_FORBIDDEN
    message = "You can only review products you have purchased."


class AlreadyReviewed(ReviewError):
    """400: one review per user per product"""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "You have already reviewed this product."


class StoreUnavailable(ReviewError):
    """500: a Supabase call failed or returned nothing usable"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Something went wrong"
