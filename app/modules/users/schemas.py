from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class DisplayNameUpdate(BaseModel):
    name: str


class UserResponse(BaseModel):
    id: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
