from sqlalchemy import Column, ForeignKeyConstraint, Integer, Text

from .base import Base
from ..types import JSONStringList, UTCTimestamp


class SMTPTransport(Base):
    __tablename__ = 'smtp_transports'
    transport_id = Column('smtp_transport_id', Text, primary_key=True)
    project_id = Column(Text, primary_key=True)
    name = Column('transport_name', Text, nullable=False)
    host = Column(Text, nullable=False)
    port = Column(Integer, nullable=False)
    username = Column(Text, nullable=False)
    # hex(nonce) (24 chars) followed by hex(ciphertext)
    encrypted_password = Column(Text, nullable=False)
    email_from = Column(Text, nullable=False)
    email_from_name = Column(Text, nullable=False)
    email_reply_to = Column('email_replyto', JSONStringList(), nullable=False)
    created_at = Column(UTCTimestamp(), nullable=False)
    modified_at = Column(UTCTimestamp(), nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ['project_id'], ['projects.project_id'], name='transports_project_id_fkey'
        ),
    )
