from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum


class Rol(enum.Enum):
    ADMIN = "admin"
    FUNCIONARIO = "funcionario"
    INSTRUCTOR = "instructor"
    APRENDIZ = "aprendiz"


class RolUsuario(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("usuarios.id"), unique=True, nullable=False)
    role = Column(
        Enum(Rol, name="app_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Rol.APRENDIZ,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    usuario = relationship("Usuario", back_populates="rol")
