from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.utils.fechas import ahora_utc


class Documento(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False, index=True)
    nombre = Column(String, nullable=False)
    descripcion = Column(String, nullable=True)
    archivo_url = Column(String, nullable=False)
    public_id = Column(String, nullable=True, unique=True)  # solo si el portal subió el archivo
    tipo_mime = Column(String, nullable=True)
    tamano_bytes = Column(Integer, nullable=True)
    category_id = Column(Integer, ForeignKey("document_categories.id"), nullable=True)
    etiquetas = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=ahora_utc)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    categoria = relationship("CategoriaDocumento")
