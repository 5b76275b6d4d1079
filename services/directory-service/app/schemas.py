from pydantic import BaseModel, EmailStr, Field, AnyHttpUrl, TypeAdapter, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime
from shared.security_config import sanitize_input
from shared.utils import settings
from app.vocabulary import (
    MAX_PORTFOLIOS, SOCIAL_MEDIA_PLATFORMS,
    is_valid_type, is_valid_rate_unit, is_valid_specializations,
)

_http_url = TypeAdapter(AnyHttpUrl)

class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True

# --- Freelancer ---

class SocialMedia(CamelModel):
    facebook: Optional[AnyHttpUrl] = None
    instagram: Optional[AnyHttpUrl] = None
    tiktok: Optional[AnyHttpUrl] = None

    @model_validator(mode="after")
    def at_least_one_link(self):
        if not any(getattr(self, platform) for platform in SOCIAL_MEDIA_PLATFORMS):
            raise ValueError("At least one social media link is required")
        return self

class Contact(CamelModel):
    email: EmailStr
    mobile: Optional[str] = None
    website: Optional[AnyHttpUrl] = None

class Portfolio(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None

    def is_complete(self) -> bool:
        if not (self.title and self.description and self.url):
            return False
        try:
            _http_url.validate_python(self.url)
        except ValueError:
            return False
        return True

class FreelancerBase(CamelModel):
    type: str
    specialized: List[str]
    rate: int = Field(..., gt=0)
    rate_unit: str
    name: str = Field(..., min_length=1)
    bio: str = Field(..., min_length=1)
    show_case: AnyHttpUrl
    profile_image: AnyHttpUrl = Field(default_factory=lambda: settings.DEFAULT_PROFILE_IMAGE, validate_default=True)
    social_media: SocialMedia
    contact: Contact
    portfolios: List[Portfolio] = Field(..., max_length=MAX_PORTFOLIOS)

    @field_validator('type')
    def check_type(cls, v):
        if not is_valid_type(v):
            raise ValueError(f"Invalid freelancer type: {v}")
        return v

    @field_validator('specialized')
    def check_specialized(cls, v):
        if not is_valid_specializations(v):
            raise ValueError("Specializations must be 1 to 6 distinct known values")
        return v

    @field_validator('rate_unit')
    def check_rate_unit(cls, v):
        if not is_valid_rate_unit(v):
            raise ValueError(f"Invalid rate unit: {v}")
        return v

    @field_validator('name', 'bio')
    def sanitize_fields(cls, v):
        return sanitize_input(v)

    @field_validator('portfolios')
    def keep_complete_portfolios(cls, v):
        complete = [
            Portfolio(
                title=sanitize_input(p.title),
                description=sanitize_input(p.description),
                url=p.url,
            )
            for p in v if p.is_complete()
        ]
        if not complete:
            raise ValueError("At least one portfolio with title, description and url is required")
        return complete

class FreelancerCreate(FreelancerBase):
    username: Optional[str] = None
    password: Optional[str] = None

class FreelancerUpdate(FreelancerBase):
    pass

class FreelancerResponse(CamelModel):
    id: str
    type: str
    specialized: List[str]
    rate: int
    rate_unit: str
    name: str
    bio: str
    show_case: str
    profile_image: str
    social_media: dict
    contact: dict
    portfolios: List[dict]
    created_at: Optional[datetime] = None

class FreelancerCreated(CamelModel):
    success: bool = True
    freelancer_id: str

class DeleteFreelancer(CamelModel):
    reason_to_leave: str = Field(..., min_length=1)
    additional_info: Optional[str] = None
    password: str

    @field_validator('reason_to_leave', 'additional_info')
    def sanitize_fields(cls, v):
        return sanitize_input(v)

# --- Login ---

class LoginRequest(CamelModel):
    username: str
    password: str

class ChangePasswordRequest(CamelModel):
    username: str
    current_password: str
    new_password: str = Field(..., min_length=1)

# --- Reviews ---

class ReviewCreate(CamelModel):
    reviewer_name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    rating: int = Field(..., ge=1, le=5)
    recommend: bool
    description: str = Field(..., min_length=1)

    @field_validator('reviewer_name', 'description')
    def sanitize_fields(cls, v):
        return sanitize_input(v)

class ReviewerResponse(CamelModel):
    name: str

class ReviewResponse(CamelModel):
    rating: int
    created_at: datetime
    reviewer: ReviewerResponse
    description: str
    recommend: bool

class ReviewCreated(CamelModel):
    success: bool = True
    review_id: str
