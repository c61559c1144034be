from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from api.schemas import GlucoseLogResponse
from auth.utils import get_current_user
from deps import get_store
from services import report_service
from stores import AppUser, HealthStore

router = APIRouter(tags=["reports"])


class DashboardResponse(BaseModel):
    latest_glucose: Optional[GlucoseLogResponse] = None
    previous_glucose: Optional[GlucoseLogResponse] = None
    trend: Optional[str] = None  # up | down | flat
    latest_glycemia_mg_dl: Optional[float] = None
    latest_weight_kg: Optional[float] = None
    bmi: Optional[float] = None
    age: Optional[int] = None


class GlucoseReportResponse(BaseModel):
    days: int
    points: list[GlucoseLogResponse]
    count: int
    min_glycemia: Optional[float] = None
    max_glycemia: Optional[float] = None
    mean_glycemia: Optional[float] = None


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(user: AppUser = Depends(get_current_user), store: HealthStore = Depends(get_store)):
    return DashboardResponse.model_validate(report_service.build_dashboard(store, user.id), from_attributes=True)


@router.get("/reports/glucose", response_model=GlucoseReportResponse)
def get_glucose_report(
    days: int = Query(default=7),
    user: AppUser = Depends(get_current_user),
    store: HealthStore = Depends(get_store),
):
    try:
        report = report_service.glucose_report(store, user.id, days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return GlucoseReportResponse.model_validate(report, from_attributes=True)
