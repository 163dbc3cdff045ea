from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class PhotoResponse(BaseModel):
    id: str
    group_id: str
    user_id: Optional[str] = None
    s3_key: str
    uploaded_at: datetime
    expires_at: datetime

    class Config:
        from_attributes = True


class PhotoWithUrlResponse(PhotoResponse):
    url: str


class PhotoUrlResponse(BaseModel):
    photo_id: str
    url: str


class PhotoUploadResponse(BaseModel):
    photo: Optional[PhotoResponse] = None
    state: str
    history: List[str]
