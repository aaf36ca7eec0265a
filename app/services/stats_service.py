from sqlalchemy.orm import Session, joinedload

from app.models.certificado import Certificado, EstadoCertificado
from app.models.documento import Documento
from app.models.perfil import Perfil
from app.models.rol_usuario import Rol
from app.services import autorizacion_service as gate
from app.services.notificacion_service import contar_no_leidas


def obtener_estadisticas(db: Session, caller_id: int, rol: Rol) -> dict:
    """Resumen para el dashboard; acotado al usuario salvo para staff."""
    staff = gate.es_staff(rol)

    certificados = db.query(Certificado)
    documentos = db.query(Documento)
    if not staff:
        certificados = certificados.filter(Certificado.user_id == caller_id)
        documentos = documentos.filter(Documento.user_id == caller_id)

    def por_estado(estado):
        return certificados.filter(Certificado.estado == estado).count()

    recientes = (
        certificados.options(joinedload(Certificado.tipo))
        .order_by(Certificado.fecha_solicitud.desc(), Certificado.id.desc())
        .limit(5)
        .all()
    )

    return {
        "certificates": {
            "total": certificados.count(),
            "pending": por_estado(EstadoCertificado.PENDIENTE),
            "in_process": por_estado(EstadoCertificado.EN_PROCESO),
            "completed": por_estado(EstadoCertificado.COMPLETADO),
        },
        "documents": {
            "total": documentos.count(),
        },
        "notifications": {
            "unread": contar_no_leidas(db, caller_id),
        },
        "recent_activity": [
            {
                "id": c.id,
                "estado": c.estado.value,
                "fecha_solicitud": c.fecha_solicitud,
                "certificate_types": {"nombre": c.tipo.nombre} if c.tipo else None,
            }
            for c in recientes
        ],
        "staff_stats": {"total_users": db.query(Perfil).count()} if staff else None,
        "user_role": rol.value,
    }
