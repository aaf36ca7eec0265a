from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import ContextoUsuario, get_contexto
from app.errors import AuthorizationError
from app.schemas.auth import AsignarRolInput
from app.services.auth_service import asignar_rol
from app.services.autorizacion_service import es_admin
from app.services.sincronizacion_service import sincronizar_documentos

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.put("/usuarios/{user_id}/rol")
def asignar_rol_endpoint(
    user_id: int,
    payload: AsignarRolInput,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    fila = asignar_rol(db, contexto.rol, user_id, payload.role)
    return {"message": "Rol actualizado", "data": {"user_id": fila.user_id, "role": fila.role.value}}


@router.post("/sincronizar-documentos")
async def sincronizar_documentos_endpoint(
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    """
    Sincroniza los documentos de la base con Cloudinary.
    Elimina los registros huérfanos y devuelve un reporte de lo removido.
    """
    if not es_admin(contexto.rol):
        raise AuthorizationError("Solo un administrador puede sincronizar documentos")
    resultado = await sincronizar_documentos(db)
    return {"message": "Sincronización completada", "data": resultado}
