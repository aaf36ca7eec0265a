from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class TipoCertificado(Base):
    __tablename__ = "certificate_types"

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String, unique=True, nullable=False)
    descripcion = Column(String, nullable=True)
    activo = Column(Boolean, nullable=False, default=True)
    tiempo_procesamiento_dias = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    certificados = relationship("Certificado", back_populates="tipo")
