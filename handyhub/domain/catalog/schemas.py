"""Catalog domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...models import SERVICE_CATEGORIES, Service
from ...utils.sanitization import clean_text

MIN_DURATION_MINUTES = 30

CATEGORY_DETAILS = {
    "cleaning": ("House Cleaning", "Professional cleaning services for your home"),
    "plumbing": ("Plumbing", "Expert plumbing repairs and installations"),
    "electrical": ("Electrical", "Safe and reliable electrical services"),
    "gardening": ("Gardening", "Lawn care and landscaping services"),
    "cooking": ("Cooking", "Personal chef and meal preparation services"),
    "handyman": ("Handyman", "General home repair and maintenance"),
    "painting": ("Painting", "Interior and exterior painting services"),
    "automotive": ("Automotive", "Car repair and maintenance services"),
}


class PriceRange(BaseModel):
    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)

    @model_validator(mode="after")
    def check_order(self):
        if self.min > self.max:
            raise ValueError("Minimum price cannot be greater than maximum price")
        return self


class DurationRange(BaseModel):
    min: int = Field(..., ge=MIN_DURATION_MINUTES)
    max: int = Field(..., ge=MIN_DURATION_MINUTES)

    @model_validator(mode="after")
    def check_order(self):
        if self.min > self.max:
            raise ValueError("Minimum duration cannot be greater than maximum duration")
        return self


def _check_category(v):
    if v is not None and v not in SERVICE_CATEGORIES:
        raise ValueError("Invalid service category")
    return v


def _clean_list(v):
    if v is None:
        return v
    return [item for item in (clean_text(i, max_length=200) for i in v) if item]


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    title: Optional[str] = Field(None, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)
    category: str
    provider: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    basePrice: PriceRange
    duration: DurationRange
    image: Optional[str] = Field(None, max_length=1000)
    icon: Optional[str] = Field(None, max_length=100)
    requirements: list[str] = []
    includes: list[str] = []
    isActive: bool = True

    @field_validator("name", "title", "description", "provider", "location")
    @classmethod
    def clean(cls, v):
        return clean_text(v)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return _check_category(v)

    @field_validator("requirements", "includes")
    @classmethod
    def clean_items(cls, v):
        return _clean_list(v)


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    title: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=500)
    category: Optional[str] = None
    provider: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    basePrice: Optional[PriceRange] = None
    duration: Optional[DurationRange] = None
    image: Optional[str] = Field(None, max_length=1000)
    icon: Optional[str] = Field(None, max_length=100)
    requirements: Optional[list[str]] = None
    includes: Optional[list[str]] = None
    isActive: Optional[bool] = None

    @field_validator("name", "title", "description", "provider", "location")
    @classmethod
    def clean(cls, v):
        return clean_text(v)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return _check_category(v)

    @field_validator("requirements", "includes")
    @classmethod
    def clean_items(cls, v):
        return _clean_list(v)


class ServiceResponse(BaseModel):
    id: int
    name: str
    title: Optional[str] = None
    description: str
    category: str
    provider: Optional[str] = None
    location: Optional[str] = None
    basePrice: dict[str, float]
    duration: dict[str, int]
    image: Optional[str] = None
    icon: Optional[str] = None
    requirements: list[str] = []
    includes: list[str] = []
    isActive: bool
    popularity: int
    averageRating: float
    totalReviews: int
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, service: Service) -> "ServiceResponse":
        return cls(
            id=service.id,
            name=service.name,
            title=service.title,
            description=service.description,
            category=service.category,
            provider=service.provider,
            location=service.location,
            basePrice={"min": service.price_min, "max": service.price_max},
            duration={"min": service.duration_min, "max": service.duration_max},
            image=service.image,
            icon=service.icon,
            requirements=service.requirements or [],
            includes=service.includes or [],
            isActive=service.is_active,
            popularity=service.popularity,
            averageRating=service.average_rating,
            totalReviews=service.total_reviews,
            createdAt=service.created_at,
        )


class CategoryResponse(BaseModel):
    name: str
    label: str
    description: str
    serviceCount: int
