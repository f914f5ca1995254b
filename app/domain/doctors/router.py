"""Doctor router - FastAPI endpoints for doctor profiles"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Profile
from .schemas import DoctorCreate, DoctorResponse, DoctorUpdate
from .service import DoctorService

router = APIRouter(prefix="/doctors", tags=["Doctors"])


def get_doctor_service(db: Session = Depends(get_db)) -> DoctorService:
    """Dependency injection for DoctorService"""
    return DoctorService(db)


@router.get("", response_model=list[DoctorResponse])
async def list_doctors(
    include_unavailable: bool = Query(True),
    current_user: Profile = Depends(get_current_user),
    service: DoctorService = Depends(get_doctor_service),
):
    """Doctors ordered by name; patients only receive available doctors"""
    return service.list_doctors(current_user, include_unavailable)


@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(
    doctor_id: str,
    current_user: Profile = Depends(get_current_user),
    service: DoctorService = Depends(get_doctor_service),
):
    return service.get_doctor(doctor_id, current_user)


@router.post("", response_model=DoctorResponse, status_code=201)
async def create_doctor(
    data: DoctorCreate,
    current_user: Profile = Depends(get_current_user),
    service: DoctorService = Depends(get_doctor_service),
):
    return service.create_doctor(data, current_user)


@router.patch("/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    doctor_id: str,
    data: DoctorUpdate,
    current_user: Profile = Depends(get_current_user),
    service: DoctorService = Depends(get_doctor_service),
):
    return service.update_doctor(doctor_id, data, current_user)


@router.delete("/{doctor_id}")
async def delete_doctor(
    doctor_id: str,
    current_user: Profile = Depends(get_current_user),
    service: DoctorService = Depends(get_doctor_service),
):
    return service.delete_doctor(doctor_id, current_user)
