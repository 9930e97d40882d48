import logging

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from .errors import Unauthenticated
from .services.reviews import ReviewService
from .stores import OrderStore, ProfileStore, ReviewStore
from .supabase_client import get_supabase_client

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Security(security),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Returns the user object if the bearer token is a valid Supabase session,
    otherwise returns None. Does NOT raise 401; the review service decides
    what an anonymous caller may do.
    """
    if credentials is None:
        return None

    token = credentials.credentials
    try:
        user_response = supabase.auth.get_user(token)
    except Exception as exc:
        logger.info("Rejected access token: %s", exc)
        return None

    if not user_response or not user_response.user:
        return None

    supa_user = user_response.user
    metadata = supa_user.user_metadata or {}

    # Public profile wins over auth metadata for display fields
    profile_data = {}
    try:
        profile_res = (
            supabase.table("users")
            .select("full_name, avatar_url")
            .eq("id", supa_user.id)
            .limit(1)
            .execute()
        )
        if profile_res.data:
            profile_data = profile_res.data[0]
    except Exception as exc:
        logger.warning("Profile lookup failed for user %s: %s", supa_user.id, exc)

    return {
        "id": supa_user.id,
        "email": supa_user.email,
        "name": profile_data.get("full_name") or metadata.get("full_name") or metadata.get("name") or "",
        "avatar_url": profile_data.get("avatar_url") or metadata.get("avatar_url"),
    }


def require_user(user=Depends(get_current_user_optional)):
    """Requires a verified caller; resolved before the request body is read."""
    if not user:
        raise Unauthenticated()
    return user


def get_review_service(supabase: Client = Depends(get_supabase_client)) -> ReviewService:
    return ReviewService(
        orders=OrderStore(supabase),
        reviews=ReviewStore(supabase),
        profiles=ProfileStore(supabase),
    )
