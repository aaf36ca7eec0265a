from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import ContextoUsuario, get_contexto
from app.schemas.notificacion import NotificacionOut
from app.services import notificacion_service

router = APIRouter(prefix="/notifications", tags=["Notificaciones"])


@router.get("")
def listar_notificaciones_endpoint(
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1),
    offset: int = Query(default=0, ge=0),
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    filas, total = notificacion_service.listar_notificaciones(
        db, contexto.user_id, solo_no_leidas=unread_only, limit=limit, offset=offset
    )
    return {
        "data": [NotificacionOut.model_validate(n) for n in filas],
        "count": total,
        "unread_count": notificacion_service.contar_no_leidas(db, contexto.user_id),
    }


@router.put("/read-all")
def marcar_todas_endpoint(contexto: ContextoUsuario = Depends(get_contexto), db: Session = Depends(get_db)):
    cantidad = notificacion_service.marcar_todas_leidas(db, contexto.user_id)
    return {"message": "Todas las notificaciones marcadas como leídas", "data": {"actualizadas": cantidad}}


@router.put("/{notificacion_id}")
def marcar_leida_endpoint(
    notificacion_id: int,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    notificacion = notificacion_service.marcar_leida(db, notificacion_id, contexto.user_id)
    return {"message": "Notificación marcada como leída", "data": NotificacionOut.model_validate(notificacion)}


@router.delete("/{notificacion_id}")
def eliminar_notificacion_endpoint(
    notificacion_id: int,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    notificacion_service.eliminar_notificacion(db, notificacion_id, contexto.user_id)
    return {"message": "Notificación eliminada"}
