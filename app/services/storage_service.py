import logging
import os
import uuid
from io import BytesIO
from typing import Optional

import cloudinary.api
import cloudinary.uploader
import cloudinary.utils
from cloudinary.exceptions import Error as CloudinaryError
from fastapi import UploadFile

from app.config import settings
from app.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

BUCKET_CERTIFICADOS = "certificates"
BUCKET_DOCUMENTOS = "documents"
BUCKET_AVATARES = "avatars"

VALID_BUCKETS = [
    BUCKET_CERTIFICADOS,
    BUCKET_DOCUMENTOS,
    BUCKET_AVATARES,
]


def is_valid_bucket(bucket: str) -> bool:
    return bucket in VALID_BUCKETS


def public_id_para(bucket: str, key: str) -> str:
    if not is_valid_bucket(bucket):
        raise StorageError(f"Bucket inválido: {bucket}", status_code=400)
    return f"{settings.CLOUDINARY_ROOT_FOLDER}/{bucket}/{key}"


def put(bucket: str, key: str, data: bytes, content_type: Optional[str] = None) -> dict:
    """Sube los bytes a Cloudinary bajo <raiz>/<bucket>/<key>."""
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise ValidationError("El archivo supera el tamaño máximo permitido (10MB)")
    public_id = public_id_para(bucket, key)
    try:
        upload_result = cloudinary.uploader.upload(
            BytesIO(data),
            resource_type="raw",
            public_id=public_id,
            overwrite=True,
            access_mode="public",
        )
    except CloudinaryError as e:
        logger.error(f"Error subiendo {public_id} a Cloudinary: {e}")
        raise StorageError("Error al subir el archivo")
    logger.info(f"Archivo subido a Cloudinary: {public_id} ({len(data)} bytes, {content_type})")
    return upload_result


def get_public_url(bucket: str, key: str) -> str:
    url, _ = cloudinary.utils.cloudinary_url(public_id_para(bucket, key), resource_type="raw", secure=True)
    return url


def remove(bucket: str, key: str) -> None:
    public_id = public_id_para(bucket, key)
    try:
        result = cloudinary.uploader.destroy(public_id, resource_type="raw")
    except CloudinaryError as e:
        logger.error(f"Error eliminando {public_id} de Cloudinary: {e}")
        raise StorageError("Error al eliminar el archivo")
    if result.get("result") not in ("ok", "not found"):
        raise StorageError("Error al eliminar el archivo")


def remove_best_effort(bucket: str, key: str) -> None:
    """Compensación: los fallos se registran y no se propagan."""
    try:
        remove(bucket, key)
        logger.info(f"Archivo huérfano eliminado: {bucket}/{key}")
    except Exception as e:
        logger.warning(f"No se pudo eliminar el archivo huérfano {bucket}/{key}: {e}")


def key_desde_public_id(bucket: str, public_id: str) -> str:
    prefijo = f"{settings.CLOUDINARY_ROOT_FOLDER}/{bucket}/"
    if public_id.startswith(prefijo):
        return public_id[len(prefijo):]
    return public_id


async def leer_upload(file: UploadFile) -> bytes:
    # Lee un byte de más para detectar archivos demasiado grandes sin cargarlos enteros
    contenido = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(contenido) > settings.MAX_UPLOAD_BYTES:
        raise ValidationError("El archivo supera el tamaño máximo permitido (10MB)")
    if not contenido:
        raise ValidationError("El archivo está vacío")
    return contenido


def subir_archivo(bucket: str, user_id: int, filename: Optional[str], data: bytes, content_type: Optional[str] = None):
    """
    Sube un archivo de usuario con nombre aleatorio.

    Devuelve (key, url) para guardar junto al registro.
    """
    extension = os.path.splitext(filename or "")[1].lower()
    key = f"{user_id}/{uuid.uuid4().hex}{extension}"
    upload_result = put(bucket, key, data, content_type)
    url = upload_result.get("secure_url") or get_public_url(bucket, key)
    return key, url
