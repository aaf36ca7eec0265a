from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from app.schemas.common import ORMModel, PatchModel


class CategoriaOut(ORMModel):
    id: int
    nombre: str
    descripcion: Optional[str] = None


class CategoriaResumen(ORMModel):
    nombre: str
    descripcion: Optional[str] = None


class DocumentoOut(ORMModel):
    id: int
    user_id: int
    nombre: str
    descripcion: Optional[str] = None
    archivo_url: str
    tipo_mime: Optional[str] = None
    tamano_bytes: Optional[int] = None
    category_id: Optional[int] = None
    etiquetas: List[str] = []
    created_at: datetime
    document_categories: Optional[CategoriaResumen] = Field(default=None, validation_alias="categoria")


class DocumentoInput(BaseModel):
    nombre: Optional[str] = Field(default=None, description="Nombre visible del documento")
    archivo_url: Optional[str] = Field(default=None, description="URL del archivo ya almacenado")
    descripcion: Optional[str] = None
    category_id: Optional[int] = None
    tamano_bytes: Optional[int] = Field(default=None, ge=0)
    tipo_mime: Optional[str] = None
    etiquetas: List[str] = []


class DocumentoPatch(PatchModel):
    nombre: Optional[str] = Field(default=None, min_length=1)
    descripcion: Optional[str] = None
    category_id: Optional[int] = None
    etiquetas: Optional[List[str]] = None
