from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String
from app.database import Base
from app.utils.fechas import ahora_utc
import enum


class TipoNotificacion(enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class Notificacion(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False, index=True)
    tipo = Column(
        Enum(TipoNotificacion, name="tipo_notificacion", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    titulo = Column(String, nullable=False)
    mensaje = Column(String, nullable=False)
    leida = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=ahora_utc)
