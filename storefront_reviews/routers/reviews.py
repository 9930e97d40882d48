from fastapi import APIRouter, Depends, status

from ..schemas.reviews import ReviewCreate, ReviewEnvelope, ReviewList
from ..dependencies import get_review_service, require_user
from ..services.reviews import ReviewService

router = APIRouter(
    prefix="/reviews",
    tags=["reviews"]
)


@router.get("/{product_id}", response_model=ReviewList)
def get_product_reviews(product_id: str, service: ReviewService = Depends(get_review_service)):
    return {"reviews": service.list_reviews(product_id)}


@router.post("", response_model=ReviewEnvelope, status_code=status.HTTP_201_CREATED)
def create_review(
    review: ReviewCreate,
    current_user: dict = Depends(require_user),
    service: ReviewService = Depends(get_review_service),
):
    """
    Submit a review. The author is always the authenticated caller,
    never a user id from the body. Anonymous callers get 401 before
    the body is validated.
    """
    return {"review": service.submit_review(current_user, review)}
