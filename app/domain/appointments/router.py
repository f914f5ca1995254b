"""Appointment router - booking, availability and admin lifecycle endpoints"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Profile
from ...utils.object_storage import ObjectStorage, get_object_storage
from ..notifications.dispatcher import NotificationDispatcher, get_notification_dispatcher
from .documents import store_appointment_document
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    ApproveOrRejectRequest,
    AvailabilityRequest,
    AvailabilityResponse,
    AvailableSlotsResponse,
    StatusSummaryResponse,
    TransitionRequest,
    TransitionResponse,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

TRANSITION_MESSAGES = {
    "approve": "Appointment approved successfully",
    "reject": "Appointment rejected successfully",
    "cancel": "Appointment cancelled successfully",
    "complete": "Appointment marked as completed",
    "delete": "Appointment deleted successfully",
}


def get_appointment_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    storage: ObjectStorage = Depends(get_object_storage),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, dispatcher, storage=storage)


def _transition_response(action: str, appointment) -> TransitionResponse:
    return TransitionResponse(
        success=True,
        message=TRANSITION_MESSAGES[action],
        appointment=AppointmentResponse.model_validate(appointment) if appointment else None,
    )


# ============================================================================
# AVAILABILITY & DOCUMENTS
# ============================================================================


@router.get("/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    doctor_id: str = Query(...),
    appointment_date: date = Query(...),
    current_user: Profile = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    slots = service.list_available_slots(doctor_id, appointment_date)
    return AvailableSlotsResponse(doctor_id=doctor_id, appointment_date=appointment_date, slots=slots)


@router.post("/check-availability", response_model=AvailabilityResponse)
async def check_availability(
    data: AvailabilityRequest,
    current_user: Profile = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    result = service.check_availability(data.doctor_id, data.appointment_date, data.appointment_time)
    return AvailabilityResponse(available=result.available, message=result.message)


@router.post("/documents")
async def upload_document(
    file: UploadFile = File(...),
    current_user: Profile = Depends(get_current_user),
    storage: ObjectStorage = Depends(get_object_storage),
):
    """Upload a supporting document (JPEG, PNG, WebP or PDF, max 5MB)"""
    data = await file.read()
    return store_appointment_document(current_user, storage, file.filename, file.content_type, data)


# ============================================================================
# BOOKING & QUERIES
# ============================================================================


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    current_user: Profile = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.create_appointment(data, current_user)


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    status: Optional[str] = Query(None),
    current_user: Profile = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Patients get their own appointments; admins get all of them"""
    return service.list_for_actor(current_user, status)


@router.get("/summary", response_model=StatusSummaryResponse)
async def get_status_summary(
    current_user: Profile = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.status_summary(current_user)


@router.get("/calendar", response_model=list[AppointmentResponse])
async def get_calendar(
    start: date = Query(...),
    end: date = Query(...),
    current_user: Profile = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.calendar(current_user, start, end)


# ============================================================================
# ADMIN LIFECYCLE
# ============================================================================


@router.post("/approve", response_model=TransitionResponse)
async def approve_or_reject(
    data: ApproveOrRejectRequest,
    current_user: Profile = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Dashboard approve/cancel buttons"""
    if data.action == "approve":
        action = "approve"
        appointment = service.transition(data.appointment_id, action, current_user, data.notes)
    else:
        action, appointment = service.cancel_or_reject(data.appointment_id, current_user, data.notes)
    return _transition_response(action, appointment)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    current_user: Profile = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.get_for_actor(appointment_id, current_user)


@router.post("/{appointment_id}/transition", response_model=TransitionResponse)
async def transition_appointment(
    appointment_id: str,
    data: TransitionRequest,
    current_user: Profile = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.transition(appointment_id, data.action, current_user, data.notes)
    return _transition_response(data.action, appointment)


@router.delete("/{appointment_id}")
async def withdraw_appointment(
    appointment_id: str,
    current_user: Profile = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Patients withdraw their own pending request; admins delete any appointment"""
    if current_user.is_admin:
        service.transition(appointment_id, "delete", current_user)
    else:
        service.withdraw(appointment_id, current_user)
    return {"success": True, "message": "Appointment deleted successfully"}
