"""Medical record router - FastAPI endpoints for visit history"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Profile
from .schemas import MedicalRecordCreate, MedicalRecordResponse
from .service import MedicalRecordService

router = APIRouter(prefix="/medical-records", tags=["Medical Records"])


def get_medical_record_service(db: Session = Depends(get_db)) -> MedicalRecordService:
    return MedicalRecordService(db)


@router.get("", response_model=list[MedicalRecordResponse])
async def list_medical_records(
    patient_id: Optional[str] = Query(None),
    current_user: Profile = Depends(get_current_user),
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    """Admins may filter by patient; patients get their own records"""
    return service.list_records(current_user, patient_id)


@router.post("", response_model=MedicalRecordResponse, status_code=201)
async def create_medical_record(
    data: MedicalRecordCreate,
    current_user: Profile = Depends(get_current_user),
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    return service.create_record(data, current_user)


@router.delete("/{record_id}")
async def delete_medical_record(
    record_id: str,
    current_user: Profile = Depends(get_current_user),
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    service.delete_record(record_id, current_user)
    return {"message": "Medical record deleted"}
