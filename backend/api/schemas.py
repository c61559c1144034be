from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from stores import MealType


class WeightEntryResponse(BaseModel):
    id: int
    date: datetime
    weight_kg: float

    model_config = {"from_attributes": True}


class GlucoseLogResponse(BaseModel):
    id: int
    timestamp: datetime
    meal_type: MealType
    glycemia: float
    dosage: float

    model_config = {"from_attributes": True}


class BulkDeleteRequest(BaseModel):
    ids: list[int] = Field(default_factory=list, max_length=1000)


class DeleteResponse(BaseModel):
    status: str = "ok"
    deleted: int


class ProfileResponse(BaseModel):
    user_id: int
    name: str
    email: Optional[str] = None
    birthdate: Optional[date] = None
    height_cm: Optional[float] = None
    age: Optional[int] = None
    bmi: Optional[float] = None
