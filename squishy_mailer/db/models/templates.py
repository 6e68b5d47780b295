from sqlalchemy import Column, ForeignKeyConstraint, Text, UniqueConstraint

from .base import Base
from ..types import UTCTimestamp


class Template(Base):
    __tablename__ = 'templates'
    template_id = Column(Text, primary_key=True)
    group_id = Column(Text, primary_key=True)
    project_id = Column(Text, primary_key=True)
    text_body = Column('txt', Text, nullable=False)
    text_digest = Column('txt_digest', Text, nullable=False)
    html_body = Column('html', Text, nullable=False)
    html_digest = Column(Text, nullable=False)
    created_at = Column(UTCTimestamp(), nullable=False)
    modified_at = Column(UTCTimestamp(), nullable=False)

    __table_args__ = (
        # template ids are unique within a project, whichever group holds them
        UniqueConstraint('template_id', 'project_id', name='templates_template_id_project_id_uindex'),
        ForeignKeyConstraint(
            ['group_id', 'project_id'],
            ['groups.group_id', 'groups.project_id'],
            name='templates_group_id_project_id_fkey',
        ),
    )
