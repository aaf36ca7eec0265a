from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.utils.fechas import ahora_utc
import enum


class EstadoCertificado(enum.Enum):
    PENDIENTE = "pendiente"
    EN_PROCESO = "en_proceso"
    COMPLETADO = "completado"
    RECHAZADO = "rechazado"


class Certificado(Base):
    __tablename__ = "certificates"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False, index=True)
    certificate_type_id = Column(Integer, ForeignKey("certificate_types.id"), nullable=False)
    estado = Column(
        Enum(EstadoCertificado, name="estado_certificado", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=EstadoCertificado.PENDIENTE,
    )
    fecha_solicitud = Column(DateTime(timezone=True), nullable=False, default=ahora_utc)
    fecha_procesamiento = Column(DateTime(timezone=True), nullable=True)
    fecha_entrega = Column(DateTime(timezone=True), nullable=True)  # solo con estado completado
    observaciones = Column(String, nullable=True)
    archivo_url = Column(String, nullable=True)
    archivo_public_id = Column(String, nullable=True)  # blob subido por el portal
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    tipo = relationship("TipoCertificado", back_populates="certificados")
    perfil = relationship(
        "Perfil",
        primaryjoin="Certificado.user_id == foreign(Perfil.user_id)",
        viewonly=True,
        uselist=False,
    )
