from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from api.schemas import BulkDeleteRequest, DeleteResponse, GlucoseLogResponse
from auth.utils import get_current_user
from deps import get_store
from services import health_service
from services.errors import GlucoTrackError
from stores import AppUser, GlucoseLog, HealthStore, MealType

router = APIRouter(prefix="/glucose", tags=["glucose"])


# --- Pydantic Schemas ---

class GlucoseLogCreate(BaseModel):
    glycemia: float = Field(ge=0.1, le=10)  # g/L
    dosage: float = Field(default=0, ge=0, le=200)
    meal_type: MealType = MealType.FASTING
    timestamp: Optional[datetime] = None


class GlucoseLogUpdate(BaseModel):
    glycemia: float = Field(ge=0.1, le=10)
    dosage: float = Field(ge=0, le=200)
    meal_type: MealType
    timestamp: datetime


@router.get("", response_model=list[GlucoseLogResponse])
def list_glucose_logs(user: AppUser = Depends(get_current_user), store: HealthStore = Depends(get_store)):
    return health_service.list_glucose_logs(store, user.id)


@router.post("", response_model=GlucoseLogResponse, status_code=status.HTTP_201_CREATED)
def create_glucose_log(
    data: GlucoseLogCreate,
    user: AppUser = Depends(get_current_user),
    store: HealthStore = Depends(get_store),
):
    return health_service.add_glucose_log(
        store,
        user.id,
        glycemia=data.glycemia,
        dosage=data.dosage,
        meal_type=data.meal_type,
        timestamp=data.timestamp,
    )


@router.put("/{log_id}", response_model=GlucoseLogResponse)
def update_glucose_log(
    log_id: int,
    data: GlucoseLogUpdate,
    user: AppUser = Depends(get_current_user),
    store: HealthStore = Depends(get_store),
):
    log = GlucoseLog(
        id=log_id,
        timestamp=data.timestamp,
        meal_type=data.meal_type,
        glycemia=data.glycemia,
        dosage=data.dosage,
    )
    try:
        return health_service.update_glucose_log(store, user.id, log)
    except GlucoTrackError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{log_id}", response_model=DeleteResponse)
def delete_glucose_log(
    log_id: int,
    user: AppUser = Depends(get_current_user),
    store: HealthStore = Depends(get_store),
):
    deleted = health_service.delete_glucose_log(store, user.id, log_id)
    return DeleteResponse(deleted=1 if deleted else 0)


@router.post("/bulk-delete", response_model=DeleteResponse)
def delete_glucose_logs(
    data: BulkDeleteRequest,
    user: AppUser = Depends(get_current_user),
    store: HealthStore = Depends(get_store),
):
    return DeleteResponse(deleted=health_service.delete_glucose_logs(store, user.id, data.ids))
