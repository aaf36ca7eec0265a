import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import NotFoundError, StorageError, ValidationError
from app.models.perfil import Perfil
from app.services import storage_service

logger = logging.getLogger(__name__)

CAMPOS_MODIFICABLES = ("nombres", "apellidos", "telefono", "avatar_url")

TIPOS_AVATAR = ("image/jpeg", "image/png", "image/gif", "image/webp")


def obtener_perfil(db: Session, user_id: int) -> Perfil:
    perfil = db.query(Perfil).filter(Perfil.user_id == user_id).first()
    if not perfil:
        raise NotFoundError("Perfil no encontrado")
    return perfil


def actualizar_perfil(db: Session, user_id: int, cambios: dict) -> Perfil:
    filtrados = {campo: valor for campo, valor in cambios.items() if campo in CAMPOS_MODIFICABLES}
    if not filtrados:
        raise ValidationError("No hay campos válidos para actualizar")
    for campo in ("nombres", "apellidos"):
        if campo in filtrados and not filtrados[campo]:
            raise ValidationError(f"{campo} no puede estar vacío")

    perfil = obtener_perfil(db, user_id)
    for campo, valor in filtrados.items():
        setattr(perfil, campo, valor)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error actualizando perfil {user_id}: {e}")
        raise StorageError("No se pudo actualizar el perfil", status_code=400)
    db.refresh(perfil)
    logger.info(f"Perfil actualizado: {user_id}")
    return perfil


def subir_avatar(db: Session, user_id: int, filename: Optional[str], data: bytes, content_type: Optional[str]) -> Perfil:
    if content_type not in TIPOS_AVATAR:
        raise ValidationError("Formato de imagen no permitido")
    perfil = obtener_perfil(db, user_id)

    key, url = storage_service.subir_archivo(storage_service.BUCKET_AVATARES, user_id, filename, data, content_type)
    anterior = perfil.avatar_public_id
    perfil.avatar_url = url
    perfil.avatar_public_id = storage_service.public_id_para(storage_service.BUCKET_AVATARES, key)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error guardando avatar de {user_id}: {e}")
        storage_service.remove_best_effort(storage_service.BUCKET_AVATARES, key)
        raise StorageError("No se pudo guardar el avatar")

    if anterior:
        storage_service.remove_best_effort(
            storage_service.BUCKET_AVATARES,
            storage_service.key_desde_public_id(storage_service.BUCKET_AVATARES, anterior),
        )
    db.refresh(perfil)
    logger.info(f"Avatar actualizado para usuario {user_id}")
    return perfil
