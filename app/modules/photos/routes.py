from fastapi import APIRouter, Depends, File, Response, UploadFile
from app.core.dependencies import (
    get_current_user_id, get_group_service, get_photo_service, get_storage, check_group_member
)
from app.core.results import unwrap
from app.modules.groups.service import GroupService
from app.modules.photos.s3_storage import S3Storage
from app.modules.photos.schemas import (
    PhotoResponse, PhotoWithUrlResponse, PhotoUrlResponse, PhotoUploadResponse
)
from app.modules.photos.service import PhotoService
from app.modules.photos.upload import UploadOrchestrator, UploadedFileCapture
from typing import List, Dict
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["photos"])


@router.post("/groups/{group_id}/photos", response_model=PhotoUploadResponse, status_code=201)
async def upload_photo(
    group_id: str,
    file: UploadFile = File(...),
    user_data: Dict = Depends(get_current_user_id),
    group_service: GroupService = Depends(get_group_service),
    photo_service: PhotoService = Depends(get_photo_service),
    storage: S3Storage = Depends(get_storage)
):
    """Store a captured photo in the bucket and record it for the group"""
    check_group_member(group_id, user_data, group_service)
    content = await file.read()
    orchestrator = UploadOrchestrator(storage, photo_service)
    source = UploadedFileCapture(content, file.filename, file.content_type)
    result = orchestrator.take_and_upload(group_id, user_data["id"], source)
    photo = unwrap(result)
    return PhotoUploadResponse(
        photo=photo,
        state=orchestrator.state.value,
        history=[s.value for s in orchestrator.history]
    )


@router.get("/groups/{group_id}/photos", response_model=List[PhotoWithUrlResponse])
async def list_group_photos(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    group_service: GroupService = Depends(get_group_service),
    photo_service: PhotoService = Depends(get_photo_service),
    storage: S3Storage = Depends(get_storage)
):
    """Photos of the group, newest first, each with a viewing URL"""
    check_group_member(group_id, user_data, group_service)
    photos = unwrap(photo_service.list_group_photos(group_id))
    return [
        PhotoWithUrlResponse(**photo.model_dump(), url=storage.presigned_url(photo.s3_key))
        for photo in photos
    ]


@router.get("/photos/mine", response_model=List[PhotoResponse])
async def list_my_photos(
    user_data: Dict = Depends(get_current_user_id),
    photo_service: PhotoService = Depends(get_photo_service)
):
    """Photos uploaded by the caller, newest first"""
    return unwrap(photo_service.list_user_photos(user_data["id"]))


@router.get("/photos/{photo_id}/url", response_model=PhotoUrlResponse)
async def get_photo_url(
    photo_id: str,
    user_data: Dict = Depends(get_current_user_id),
    group_service: GroupService = Depends(get_group_service),
    photo_service: PhotoService = Depends(get_photo_service)
):
    """Time-limited URL for a photo (only if user is a member of its group)"""
    photo = unwrap(photo_service.get_photo(photo_id))
    check_group_member(photo.group_id, user_data, group_service)
    return PhotoUrlResponse(photo_id=photo.id, url=unwrap(photo_service.photo_url(photo.s3_key)))


@router.delete("/photos/{photo_id}", status_code=204)
async def delete_photo(
    photo_id: str,
    response: Response,
    user_data: Dict = Depends(get_current_user_id),
    group_service: GroupService = Depends(get_group_service),
    photo_service: PhotoService = Depends(get_photo_service),
    storage: S3Storage = Depends(get_storage)
):
    """Delete the photo row, then its bytes in the bucket"""
    photo = unwrap(photo_service.get_photo(photo_id))
    check_group_member(photo.group_id, user_data, group_service)
    unwrap(photo_service.delete_photo(photo.id, photo.s3_key))
    if not storage.delete_file(photo.s3_key):
        logger.warning(f"Photo {photo.id} deleted but object {photo.s3_key} remains in the bucket")
        response.headers["X-Warning"] = f"Object {photo.s3_key} was not removed from storage"
    return None
