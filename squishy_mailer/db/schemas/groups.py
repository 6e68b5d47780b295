from datetime import datetime
from pydantic import BaseModel, ConfigDict


class GroupBase(BaseModel):
    group_id: str
    project_id: str
    name: str


class GroupCreate(GroupBase):
    pass


class Group(GroupBase):
    created_at: datetime
    modified_at: datetime
    model_config = ConfigDict(from_attributes=True)
