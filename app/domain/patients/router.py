"""Patient/profile routers - own profile and admin patient management"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Profile
from ...utils.object_storage import ObjectStorage, get_object_storage
from .schemas import PhotoUploadResponse, ProfileResponse, ProfileUpdate
from .service import PatientService

profiles_router = APIRouter(prefix="/profiles", tags=["Profiles"])
patients_router = APIRouter(prefix="/patients", tags=["Patients"])


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    return PatientService(db)


@profiles_router.get("/me", response_model=ProfileResponse)
async def get_my_profile(current_user: Profile = Depends(get_current_user)):
    return current_user


@profiles_router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    current_user: Profile = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    return service.update_profile(current_user, data)


@profiles_router.post("/me/photo", response_model=PhotoUploadResponse)
async def upload_profile_photo(
    file: UploadFile = File(...),
    current_user: Profile = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
    storage: ObjectStorage = Depends(get_object_storage),
):
    """Upload a profile photo (JPEG, PNG or WebP, max 5MB)"""
    data = await file.read()
    profile = service.upload_photo(current_user, storage, file.filename, file.content_type, data)
    return PhotoUploadResponse(
        success=True,
        url=profile.profile_photo_url,
        profile=ProfileResponse.model_validate(profile),
    )


@patients_router.get("", response_model=list[ProfileResponse])
async def list_patients(
    search: Optional[str] = Query(None, max_length=255),
    current_user: Profile = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    """Admin: all patients, optionally filtered by name, email or phone"""
    return service.list_patients(current_user, search)


@patients_router.delete("/{patient_id}")
async def delete_patient(
    patient_id: str,
    current_user: Profile = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    return service.delete_patient(patient_id, current_user)
