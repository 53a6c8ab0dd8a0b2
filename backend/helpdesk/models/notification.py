# helpdesk/models/notification.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
import datetime as dt
from typing import Optional, List, Literal
from helpdesk.models.common import NotificationType

class Notification(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    title: str = ""
    message: str
    type: NotificationType
    request_id: Optional[str] = None
    read: bool = False
    created_at: datetime

class NotificationEvent(BaseModel):
    """
    Hecho a notificar, producido por la máquina de estados y entregado
    después de confirmar la escritura principal.
    audience="user" -> recipient_id; audience="admins" -> todos los admins salvo exclude_ids.
    """
    audience: Literal["user", "admins"] = "user"
    recipient_id: Optional[str] = None
    exclude_ids: List[str] = Field(default_factory=list)
    title: str
    message: str
    type: NotificationType
    request_id: Optional[str] = None

class Holiday(BaseModel):
    id: str
    date: dt.date
    name: str

class HolidayCreate(BaseModel):
    date: dt.date
    name: str
