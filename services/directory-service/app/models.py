from datetime import datetime
from typing import Optional, List
from bson import ObjectId
from pydantic import BaseModel, Field

class LoginDB(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
    username: str
    password_hash: str

    class Config:
        populate_by_name = True

class PortfolioDB(BaseModel):
    title: str
    description: str
    url: str

class FreelancerDB(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
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
    portfolios: List[PortfolioDB]
    login_id: Optional[ObjectId] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True

class ReviewerDB(BaseModel):
    name: str
    email: Optional[str] = None
    tag: str = "anonymous"

class ReviewDB(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
    freelancer_id: ObjectId
    reviewer: ReviewerDB
    description: str
    rating: int = Field(..., ge=1, le=5)
    recommend: bool
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True

class SurveyDB(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
    category: str
    response: dict
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True
