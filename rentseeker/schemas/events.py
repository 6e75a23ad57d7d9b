# rentseeker/schemas/events.py
from typing import List, Optional

from pydantic import BaseModel

from rentseeker.schemas.enums import EventKind


class Button(BaseModel):
    """One selectable option: the label shown and the data sent back when pressed."""
    text: str
    data: str


# Rows of buttons, rendered as an inline keyboard by the transport
Options = List[List[Button]]


class InboundEvent(BaseModel):
    """
    A transport-neutral inbound event.
    For commands the payload is the command name without the slash,
    for selections it is the callback data, for text the message body.
    """
    user_id: int
    chat_id: int
    kind: EventKind
    payload: str
    first_name: Optional[str] = None
    message_id: Optional[int] = None
    message_text: Optional[str] = None
    callback_id: Optional[str] = None
