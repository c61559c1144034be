from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from api.schemas import BulkDeleteRequest, DeleteResponse, WeightEntryResponse
from auth.utils import get_current_user
from deps import get_store
from services import health_service
from services.errors import GlucoTrackError
from stores import AppUser, HealthStore, WeightEntry

router = APIRouter(prefix="/weights", tags=["weights"])


# --- Pydantic Schemas ---

class WeightEntryCreate(BaseModel):
    weight_kg: float = Field(gt=0, le=500)
    date: Optional[datetime] = None


class WeightEntryUpdate(BaseModel):
    weight_kg: float = Field(gt=0, le=500)
    date: datetime


@router.get("", response_model=list[WeightEntryResponse])
def list_weight_entries(user: AppUser = Depends(get_current_user), store: HealthStore = Depends(get_store)):
    return health_service.list_weights(store, user.id)


@router.post("", response_model=WeightEntryResponse, status_code=status.HTTP_201_CREATED)
def create_weight_entry(
    data: WeightEntryCreate,
    user: AppUser = Depends(get_current_user),
    store: HealthStore = Depends(get_store),
):
    return health_service.add_weight(store, user.id, data.weight_kg, data.date)


@router.put("/{entry_id}", response_model=WeightEntryResponse)
def update_weight_entry(
    entry_id: int,
    data: WeightEntryUpdate,
    user: AppUser = Depends(get_current_user),
    store: HealthStore = Depends(get_store),
):
    try:
        return health_service.update_weight(
            store,
            user.id,
            WeightEntry(id=entry_id, date=data.date, weight_kg=data.weight_kg),
        )
    except GlucoTrackError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{entry_id}", response_model=DeleteResponse)
def delete_weight_entry(
    entry_id: int,
    user: AppUser = Depends(get_current_user),
    store: HealthStore = Depends(get_store),
):
    deleted = health_service.delete_weight(store, user.id, entry_id)
    return DeleteResponse(deleted=1 if deleted else 0)


@router.post("/bulk-delete", response_model=DeleteResponse)
def delete_weight_entries(
    data: BulkDeleteRequest,
    user: AppUser = Depends(get_current_user),
    store: HealthStore = Depends(get_store),
):
    return DeleteResponse(deleted=health_service.delete_weights(store, user.id, data.ids))
