from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Usuario(Base):
    """Credenciales de identidad; el resto de los datos vive en el perfil."""
    __tablename__ = "usuarios"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    activo = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    perfil = relationship("Perfil", back_populates="usuario", uselist=False, cascade="all, delete-orphan")
    rol = relationship("RolUsuario", back_populates="usuario", uselist=False, cascade="all, delete-orphan")
