"""Inbound event schema for the chat transport bridge."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class InboundEvent(BaseModel):
    """One message delivered by the chat transport."""
    text: str = Field(description="Message body")
    sender: str = Field(description="Sender display name or address")
    conversation_id: str = Field(description="Conversation the message was posted in")
    timestamp: Optional[datetime] = Field(default=None, description="Delivery time; defaults to now")
    is_status: bool = Field(default=False, description="Status or protocol message")
