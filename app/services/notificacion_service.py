import logging
from typing import List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import AuthorizationError, NotFoundError, StorageError, ValidationError
from app.models.notificacion import Notificacion, TipoNotificacion

logger = logging.getLogger(__name__)


def notificar(
    db: Session,
    user_id: int,
    tipo: TipoNotificacion,
    titulo: str,
    mensaje: str,
    commit: bool = True,
) -> Notificacion:
    """
    Inserta una notificación para user_id.

    Con commit=False solo se agrega a la sesión; quien llama confirma la
    transacción junto con su propio cambio.
    """
    if isinstance(tipo, str):
        try:
            tipo = TipoNotificacion(tipo)
        except ValueError:
            raise ValidationError(f"Tipo de notificación inválido: {tipo}")

    notificacion = Notificacion(user_id=user_id, tipo=tipo, titulo=titulo, mensaje=mensaje, leida=False)
    db.add(notificacion)
    if not commit:
        return notificacion
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creando notificación para usuario {user_id}: {e}")
        raise StorageError("No se pudo guardar la notificación")
    db.refresh(notificacion)
    return notificacion


def _buscar_propia(db: Session, notificacion_id: int, caller_id: int) -> Notificacion:
    notificacion = db.query(Notificacion).filter(Notificacion.id == notificacion_id).first()
    if not notificacion:
        raise NotFoundError("Notificación no encontrada")
    if notificacion.user_id != caller_id:
        logger.warning(f"Usuario {caller_id} intentó acceder a la notificación {notificacion_id}")
        raise AuthorizationError("No autorizado")
    return notificacion


def marcar_leida(db: Session, notificacion_id: int, caller_id: int) -> Notificacion:
    notificacion = _buscar_propia(db, notificacion_id, caller_id)
    if not notificacion.leida:
        notificacion.leida = True
        db.commit()
        db.refresh(notificacion)
    return notificacion


def marcar_todas_leidas(db: Session, caller_id: int) -> int:
    """Marca como leídas todas las notificaciones pendientes; devuelve cuántas cambiaron."""
    cantidad = (
        db.query(Notificacion)
        .filter(Notificacion.user_id == caller_id, Notificacion.leida.is_(False))
        .update({Notificacion.leida: True}, synchronize_session=False)
    )
    db.commit()
    logger.info(f"{cantidad} notificaciones marcadas como leídas para usuario {caller_id}")
    return cantidad


def contar_no_leidas(db: Session, caller_id: int) -> int:
    return (
        db.query(Notificacion)
        .filter(Notificacion.user_id == caller_id, Notificacion.leida.is_(False))
        .count()
    )


def listar_notificaciones(
    db: Session,
    caller_id: int,
    solo_no_leidas: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Notificacion], int]:
    query = db.query(Notificacion).filter(Notificacion.user_id == caller_id)
    if solo_no_leidas:
        query = query.filter(Notificacion.leida.is_(False))
    total = query.count()
    filas = (
        query.order_by(Notificacion.created_at.desc(), Notificacion.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return filas, total


def eliminar_notificacion(db: Session, notificacion_id: int, caller_id: int) -> None:
    notificacion = _buscar_propia(db, notificacion_id, caller_id)
    db.delete(notificacion)
    db.commit()
    logger.info(f"Notificación eliminada: {notificacion_id}")
