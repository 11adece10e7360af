from pydantic import BaseModel, Field
from datetime import datetime


class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class MessageOut(BaseModel):
    id: int
    thread_id: int
    sender_org_id: int | None = None
    sender_user_id: int
    sender_name: str
    message_text: str
    is_read: bool
    created_at: datetime
