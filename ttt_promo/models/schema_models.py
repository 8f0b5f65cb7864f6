from datetime import datetime

from pydantic import BaseModel


class SessionPromoSchema(BaseModel):
    code: str
    created_at: datetime


class IssuedCodeSchema(BaseModel):
    session_id: str
    created_at: datetime
    redeemed: bool = False


class ProcessedEventSchema(BaseModel):
    created_at: datetime
    response: dict
