from datetime import datetime
from pydantic import BaseModel, ConfigDict


class TemplateBase(BaseModel):
    template_id: str
    group_id: str
    project_id: str
    text_body: str
    text_digest: str
    html_body: str
    html_digest: str


class TemplateCreate(TemplateBase):
    pass


class Template(TemplateBase):
    created_at: datetime
    modified_at: datetime
    model_config = ConfigDict(from_attributes=True)
