from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.schemas import ProfileResponse
from auth.utils import get_current_user
from deps import get_store
from services import health_service
from services.errors import GlucoTrackError
from stores import AppUser, HealthStore, Profile
from utils.health_metrics import calculate_age, calculate_bmi

router = APIRouter(prefix="/profile", tags=["profile"])


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    birthdate: Optional[date] = None
    height_cm: Optional[float] = Field(default=None, gt=0, le=300)


def _profile_response(store: HealthStore, user: AppUser, profile: Profile) -> ProfileResponse:
    weights = store.weights.list(user.id)
    latest_weight = weights[0].weight_kg if weights else None
    return ProfileResponse(
        user_id=profile.user_id,
        name=profile.name,
        email=user.email,
        birthdate=profile.birthdate,
        height_cm=profile.height_cm,
        age=calculate_age(profile.birthdate),
        bmi=calculate_bmi(profile.height_cm, latest_weight),
    )


@router.get("", response_model=ProfileResponse)
def get_profile(user: AppUser = Depends(get_current_user), store: HealthStore = Depends(get_store)):
    profile = health_service.get_profile(store, user.id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return _profile_response(store, user, profile)


@router.patch("", response_model=ProfileResponse)
def update_profile(
    update: ProfileUpdate,
    user: AppUser = Depends(get_current_user),
    store: HealthStore = Depends(get_store),
):
    payload = update.model_dump(exclude_unset=True)
    try:
        profile = health_service.update_profile(store, user.id, payload)
    except GlucoTrackError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _profile_response(store, user, profile)
