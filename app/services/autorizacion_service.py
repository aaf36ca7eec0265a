from sqlalchemy.orm import Session

from app.models.certificado import EstadoCertificado
from app.models.rol_usuario import Rol, RolUsuario

ROLES_STAFF = (Rol.ADMIN, Rol.FUNCIONARIO)

# Un usuario sin fila en user_roles se trata como aprendiz
ROL_POR_DEFECTO = Rol.APRENDIZ


def parsear_rol(valor: str) -> Rol:
    """Convierte el texto recibido en un Rol; valores desconocidos -> ValueError."""
    if isinstance(valor, Rol):
        return valor
    return Rol((valor or "").strip().lower())


def resolver_rol(db: Session, user_id: int) -> Rol:
    fila = db.query(RolUsuario).filter(RolUsuario.user_id == user_id).first()
    if not fila:
        return ROL_POR_DEFECTO
    return fila.role


def es_staff(rol: Rol) -> bool:
    return rol in ROLES_STAFF


def es_admin(rol: Rol) -> bool:
    return rol == Rol.ADMIN


def puede_ver_solicitud(rol: Rol, dueno_id: int, caller_id: int) -> bool:
    return dueno_id == caller_id or es_staff(rol)


def puede_cambiar_estado(rol: Rol) -> bool:
    return es_staff(rol)


def puede_eliminar_solicitud(rol: Rol, estado: EstadoCertificado, es_dueno: bool) -> bool:
    if es_admin(rol):
        return True
    return es_dueno and estado == EstadoCertificado.PENDIENTE


def puede_gestionar_tipos(rol: Rol) -> bool:
    return es_staff(rol)


# Documentos: lectura para dueño y staff, edición solo el dueño,
# borrado el dueño o un admin
def puede_ver_documento(rol: Rol, dueno_id: int, caller_id: int) -> bool:
    return dueno_id == caller_id or es_staff(rol)


def puede_editar_documento(dueno_id: int, caller_id: int) -> bool:
    return dueno_id == caller_id


def puede_eliminar_documento(rol: Rol, dueno_id: int, caller_id: int) -> bool:
    return dueno_id == caller_id or es_admin(rol)
