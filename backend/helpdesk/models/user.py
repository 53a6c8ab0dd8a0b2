# helpdesk/models/user.py
from pydantic import BaseModel
from helpdesk.models.common import Role

class CurrentUser(BaseModel):
    # identidad que entrega el proveedor de autenticación
    id: str
    name: str
    email: str = ""
    role: Role = "requester"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: Role
