from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from app.models.certificado import EstadoCertificado
from app.schemas.common import ORMModel, PatchModel


class TipoCertificadoOut(ORMModel):
    id: int
    nombre: str
    descripcion: Optional[str] = None
    activo: bool
    tiempo_procesamiento_dias: Optional[int] = None


class TipoCertificadoInput(BaseModel):
    nombre: str = Field(..., min_length=1, description="Nombre del tipo de certificado")
    descripcion: Optional[str] = None
    activo: bool = True
    tiempo_procesamiento_dias: Optional[int] = Field(default=None, ge=0)


class TipoCertificadoPatch(PatchModel):
    nombre: Optional[str] = Field(default=None, min_length=1)
    descripcion: Optional[str] = None
    activo: Optional[bool] = None
    tiempo_procesamiento_dias: Optional[int] = Field(default=None, ge=0)


class TipoResumen(ORMModel):
    nombre: str
    descripcion: Optional[str] = None


class PerfilResumen(ORMModel):
    nombres: str
    apellidos: str
    email: str


class CertificadoOut(ORMModel):
    id: int
    user_id: int
    certificate_type_id: int
    estado: EstadoCertificado
    fecha_solicitud: datetime
    fecha_procesamiento: Optional[datetime] = None
    fecha_entrega: Optional[datetime] = None
    observaciones: Optional[str] = None
    archivo_url: Optional[str] = None
    certificate_types: Optional[TipoResumen] = Field(default=None, validation_alias="tipo")
    profiles: Optional[PerfilResumen] = Field(default=None, validation_alias="perfil")


class CertificadoInput(BaseModel):
    certificate_type_id: Optional[int] = Field(default=None, description="Tipo de certificado solicitado")
    observaciones: Optional[str] = None


class CertificadoPatch(PatchModel):
    """Campos que el staff puede modificar; el estado se valida en el servicio."""
    estado: Optional[str] = None
    observaciones: Optional[str] = None
    archivo_url: Optional[str] = None
    fecha_procesamiento: Optional[datetime] = None
    fecha_entrega: Optional[datetime] = None
