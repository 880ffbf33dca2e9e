"""
Pydantic schemas for request and response validation.
"""

from pydantic import BaseModel, ConfigDict


class BeerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    tagline: str
    abv: float


class ErrorResponse(BaseModel):
    detail: str
    status_code: int
