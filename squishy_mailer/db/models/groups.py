from sqlalchemy import Column, ForeignKeyConstraint, Text

from .base import Base
from ..types import UTCTimestamp


class Group(Base):
    __tablename__ = 'groups'
    group_id = Column(Text, primary_key=True)
    project_id = Column(Text, primary_key=True)
    name = Column('group_name', Text, nullable=False)
    created_at = Column(UTCTimestamp(), nullable=False)
    modified_at = Column(UTCTimestamp(), nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ['project_id'], ['projects.project_id'], name='groups_project_id_fkey'
        ),
    )
