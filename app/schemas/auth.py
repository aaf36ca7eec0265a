from typing import Optional
from pydantic import BaseModel, Field


class RegistroInput(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    numero_identificacion: Optional[str] = None
    nombres: Optional[str] = None
    apellidos: Optional[str] = None
    telefono: Optional[str] = None
    role: str = Field(default="aprendiz", description="Rol solicitado")


class LoginInput(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AsignarRolInput(BaseModel):
    role: str
