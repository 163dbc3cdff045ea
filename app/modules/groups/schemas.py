from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime


class GroupCreate(BaseModel):
    group_name: str

    @field_validator("group_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class GroupJoin(BaseModel):
    join_code: str


class GroupResponse(BaseModel):
    id: str
    join_code: str
    group_name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupMemberResponse(BaseModel):
    id: str
    group_id: str
    user_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
