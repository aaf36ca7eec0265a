import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.errors import AuthorizationError, NotFoundError, StorageError, ValidationError
from app.models.categoria_documento import CategoriaDocumento
from app.models.documento import Documento
from app.models.rol_usuario import Rol
from app.services import autorizacion_service as gate
from app.services import storage_service

logger = logging.getLogger(__name__)

CAMPOS_MODIFICABLES = ("nombre", "descripcion", "category_id", "etiquetas")


def listar_categorias(db: Session) -> List[CategoriaDocumento]:
    return db.query(CategoriaDocumento).order_by(CategoriaDocumento.nombre).all()


def _validar_categoria(db: Session, category_id: Optional[int]) -> None:
    if category_id is None:
        return
    if not db.query(CategoriaDocumento).filter(CategoriaDocumento.id == category_id).first():
        raise ValidationError("Categoría de documento inexistente")


def _normalizar_etiquetas(etiquetas) -> List[str]:
    if not etiquetas:
        return []
    # Sin duplicados, conservando el orden
    vistas = []
    for etiqueta in etiquetas:
        etiqueta = str(etiqueta).strip()
        if etiqueta and etiqueta not in vistas:
            vistas.append(etiqueta)
    return vistas


def _buscar(db: Session, documento_id: int) -> Documento:
    documento = (
        db.query(Documento)
        .options(joinedload(Documento.categoria))
        .filter(Documento.id == documento_id)
        .first()
    )
    if not documento:
        raise NotFoundError("Documento no encontrado")
    return documento


def listar_documentos(
    db: Session,
    caller_id: int,
    rol: Rol,
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Documento], int]:
    query = db.query(Documento).options(joinedload(Documento.categoria))
    if not gate.es_staff(rol):
        query = query.filter(Documento.user_id == caller_id)
    if category_id is not None:
        query = query.filter(Documento.category_id == category_id)
    if search:
        query = query.filter(Documento.nombre.ilike(f"%{search}%"))
    total = query.count()
    filas = (
        query.order_by(Documento.created_at.desc(), Documento.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return filas, total


def obtener_documento(db: Session, documento_id: int, caller_id: int, rol: Rol) -> Documento:
    documento = _buscar(db, documento_id)
    if not gate.puede_ver_documento(rol, documento.user_id, caller_id):
        raise AuthorizationError("No autorizado")
    return documento


def crear_documento(
    db: Session,
    user_id: int,
    nombre: Optional[str],
    archivo_url: Optional[str],
    descripcion: Optional[str] = None,
    category_id: Optional[int] = None,
    tamano_bytes: Optional[int] = None,
    tipo_mime: Optional[str] = None,
    etiquetas: Optional[List[str]] = None,
    public_id: Optional[str] = None,
) -> Documento:
    if not nombre or not archivo_url:
        raise ValidationError("nombre y archivo_url son requeridos")
    _validar_categoria(db, category_id)

    documento = Documento(
        user_id=user_id,
        nombre=nombre,
        descripcion=descripcion or None,
        archivo_url=archivo_url,
        public_id=public_id,
        category_id=category_id,
        tamano_bytes=tamano_bytes,
        tipo_mime=tipo_mime or None,
        etiquetas=_normalizar_etiquetas(etiquetas),
    )
    db.add(documento)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creando documento: {e}")
        raise StorageError("No se pudo registrar el documento", status_code=400)
    logger.info(f"Documento creado: {documento.id}")
    return _buscar(db, documento.id)


def subir_documento(
    db: Session,
    user_id: int,
    filename: Optional[str],
    data: bytes,
    content_type: Optional[str] = None,
    nombre: Optional[str] = None,
    descripcion: Optional[str] = None,
    category_id: Optional[int] = None,
    etiquetas: Optional[List[str]] = None,
) -> Documento:
    """
    Sube el archivo al bucket de documentos y registra sus metadatos.

    Si el registro en la base falla, el archivo ya subido se elimina
    (best-effort; un fallo al eliminarlo solo queda en el log).
    """
    _validar_categoria(db, category_id)
    key, url = storage_service.subir_archivo(storage_service.BUCKET_DOCUMENTOS, user_id, filename, data, content_type)
    try:
        return crear_documento(
            db,
            user_id,
            nombre or filename,
            url,
            descripcion=descripcion,
            category_id=category_id,
            tamano_bytes=len(data),
            tipo_mime=content_type,
            etiquetas=etiquetas,
            public_id=storage_service.public_id_para(storage_service.BUCKET_DOCUMENTOS, key),
        )
    except Exception:
        storage_service.remove_best_effort(storage_service.BUCKET_DOCUMENTOS, key)
        raise


def actualizar_documento(db: Session, documento_id: int, caller_id: int, cambios: dict) -> Documento:
    documento = _buscar(db, documento_id)
    if not gate.puede_editar_documento(documento.user_id, caller_id):
        raise AuthorizationError("No autorizado")

    filtrados = {campo: valor for campo, valor in cambios.items() if campo in CAMPOS_MODIFICABLES}
    if not filtrados:
        raise ValidationError("No hay campos válidos para actualizar")
    if "nombre" in filtrados and not filtrados["nombre"]:
        raise ValidationError("nombre no puede estar vacío")
    if "category_id" in filtrados:
        _validar_categoria(db, filtrados["category_id"])
    if "etiquetas" in filtrados:
        filtrados["etiquetas"] = _normalizar_etiquetas(filtrados["etiquetas"])

    for campo, valor in filtrados.items():
        setattr(documento, campo, valor)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error actualizando documento {documento_id}: {e}")
        raise StorageError("No se pudo actualizar el documento", status_code=400)
    logger.info(f"Documento actualizado: {documento_id}")
    return _buscar(db, documento_id)


def eliminar_documento(db: Session, documento_id: int, caller_id: int, rol: Rol) -> None:
    documento = db.query(Documento).filter(Documento.id == documento_id).first()
    if not documento:
        raise NotFoundError("Documento no encontrado")
    if not gate.puede_eliminar_documento(rol, documento.user_id, caller_id):
        raise AuthorizationError("No autorizado")

    public_id = documento.public_id
    db.delete(documento)
    db.commit()
    logger.info(f"Documento eliminado: {documento_id}")

    if public_id:
        storage_service.remove_best_effort(
            storage_service.BUCKET_DOCUMENTOS,
            storage_service.key_desde_public_id(storage_service.BUCKET_DOCUMENTOS, public_id),
        )
