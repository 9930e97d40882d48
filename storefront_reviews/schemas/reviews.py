from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

RATING_MIN = 1
RATING_MAX = 5
COMMENT_MAX_LENGTH = 2000


class ReviewBase(BaseModel):
    # strict: JSON true or "5" is not a rating
    rating: int = Field(..., strict=True, ge=RATING_MIN, le=RATING_MAX)
    comment: Optional[str] = Field(None, max_length=COMMENT_MAX_LENGTH)


class ReviewCreate(ReviewBase):
    # The storefront posts camelCase, other clients snake_case
    product_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("product_id", "productId"),
    )

    @field_validator("product_id", mode="before")
    @classmethod
    def strip_product_id(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("comment", mode="before")
    @classmethod
    def strip_comment(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class AuthorMetadata(BaseModel):
    full_name: str
    avatar_url: Optional[str] = None


class ReviewOut(BaseModel):
    id: str
    user_id: str
    product_id: str
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    user_metadata: Optional[AuthorMetadata] = None

    class Config:
        from_attributes = True


class ReviewEnvelope(BaseModel):
    review: ReviewOut


class ReviewList(BaseModel):
    reviews: list[ReviewOut]
