"""Service and professional catalog models fed in by the storefront."""

from typing import Optional

from pydantic import BaseModel, Field


class Service(BaseModel):
    """A bookable service such as a haircut or beard trim."""
    id: str
    name: str
    duration: int = Field(gt=0, description="Duration in minutes")
    price: float = Field(ge=0)
    visible: bool = True
    description: Optional[str] = None


class Professional(BaseModel):
    """A barber or other professional who takes appointments."""
    id: str
    name: str
    specialties: list[str] = Field(default_factory=list)
    available: bool = True
    rating: Optional[float] = Field(default=None, ge=0, le=5)
