from datetime import datetime
from pydantic import BaseModel, ConfigDict


class ProjectBase(BaseModel):
    project_id: str
    name: str = ""
    description: str = ""


class ProjectCreate(ProjectBase):
    pass


class Project(ProjectBase):
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
