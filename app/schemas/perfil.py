from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from app.schemas.common import ORMModel, PatchModel


class PerfilOut(ORMModel):
    id: int
    user_id: int
    numero_identificacion: str
    nombres: str
    apellidos: str
    email: str
    telefono: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None


class PerfilPatch(PatchModel):
    """numero_identificacion y email no se pueden cambiar."""
    nombres: Optional[str] = Field(default=None, min_length=1)
    apellidos: Optional[str] = Field(default=None, min_length=1)
    telefono: Optional[str] = None
    avatar_url: Optional[str] = None


class CambioPasswordInput(BaseModel):
    new_password: Optional[str] = None
