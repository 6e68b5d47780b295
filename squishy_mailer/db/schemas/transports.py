from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from squishy_mailer.utils.credential_cipher import NONCE_HEX_LENGTH

# 16 byte GCM tag, hex encoded
_MIN_CIPHERTEXT_HEX = 32


class TransportBase(BaseModel):
    transport_id: str
    project_id: str
    name: str
    host: str
    port: int = Field(gt=0, lt=65536)
    username: str
    email_from: str
    email_from_name: str = ""
    email_reply_to: List[str] = Field(default_factory=list)


class TransportCreate(TransportBase):
    encrypted_password: str

    @field_validator("encrypted_password")
    @classmethod
    def _validate_envelope(cls, v: str):
        if len(v) < NONCE_HEX_LENGTH + _MIN_CIPHERTEXT_HEX:
            raise ValueError("encrypted_password is shorter than nonce plus tag")
        try:
            bytes.fromhex(v)
        except ValueError:
            raise ValueError("encrypted_password must be hex encoded")
        return v


class SMTPTransportCreate(TransportBase):
    """Caller-facing request; the password is encrypted before it is stored."""
    password: str


class Transport(TransportBase):
    encrypted_password: str
    created_at: datetime
    modified_at: datetime
    model_config = ConfigDict(from_attributes=True)
