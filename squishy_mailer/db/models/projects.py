from sqlalchemy import Column, Text

from .base import Base
from ..types import UTCTimestamp


class Project(Base):
    __tablename__ = 'projects'
    project_id = Column(Text, primary_key=True)
    name = Column('project_name', Text, nullable=False, server_default='')
    description = Column(Text, nullable=False, server_default='')
    created_at = Column(UTCTimestamp(), nullable=False)
