"""Admin router - dashboard statistics"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Profile
from ..appointments.schemas import AppointmentResponse
from .service import AdminStatsService

router = APIRouter(prefix="/admin", tags=["Admin"])


class DashboardStatsResponse(BaseModel):
    total_patients: int
    total_doctors: int
    total_appointments: int
    pending_appointments: int
    approved_appointments: int
    total_medical_records: int
    recent_appointments: list[AppointmentResponse]


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    stats = AdminStatsService(db).dashboard_stats(current_user)
    stats["recent_appointments"] = [
        AppointmentResponse.model_validate(a) for a in stats["recent_appointments"]
    ]
    return DashboardStatsResponse(**stats)
