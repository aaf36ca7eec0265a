import logging
from io import BytesIO
from typing import List, Optional, Tuple

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.errors import AuthorizationError, NotFoundError, StorageError, ValidationError
from app.models.certificado import Certificado, EstadoCertificado
from app.models.notificacion import TipoNotificacion
from app.models.rol_usuario import Rol
from app.models.tipo_certificado import TipoCertificado
from app.services import autorizacion_service as gate
from app.services import storage_service
from app.services.notificacion_service import notificar
from app.utils.fechas import ahora_utc, como_utc

logger = logging.getLogger(__name__)

# Transiciones permitidas; completado y rechazado son terminales
TRANSICIONES = {
    EstadoCertificado.PENDIENTE: {
        EstadoCertificado.EN_PROCESO,
        EstadoCertificado.COMPLETADO,
        EstadoCertificado.RECHAZADO,
    },
    EstadoCertificado.EN_PROCESO: {
        EstadoCertificado.COMPLETADO,
        EstadoCertificado.RECHAZADO,
    },
    EstadoCertificado.COMPLETADO: set(),
    EstadoCertificado.RECHAZADO: set(),
}

CAMPOS_MODIFICABLES = ("estado", "observaciones", "archivo_url", "fecha_procesamiento", "fecha_entrega")

# Una fecha ya registrada no se puede borrar con null
CAMPOS_FECHA = ("fecha_procesamiento", "fecha_entrega")

MENSAJES_ESTADO = {
    EstadoCertificado.EN_PROCESO: "está siendo procesada",
    EstadoCertificado.COMPLETADO: "ha sido completada",
    EstadoCertificado.RECHAZADO: "ha sido rechazada",
}


def parsear_estado(valor) -> EstadoCertificado:
    if isinstance(valor, EstadoCertificado):
        return valor
    try:
        return EstadoCertificado(valor)
    except ValueError:
        validos = ", ".join(e.value for e in EstadoCertificado)
        raise ValidationError(f"Estado inválido: {valor}. Valores permitidos: {validos}")


def transicion_permitida(actual: EstadoCertificado, nuevo: EstadoCertificado) -> bool:
    return nuevo == actual or nuevo in TRANSICIONES[actual]


def _query_con_relaciones(db: Session):
    return db.query(Certificado).options(joinedload(Certificado.tipo), joinedload(Certificado.perfil))


def _buscar(db: Session, solicitud_id: int) -> Certificado:
    certificado = _query_con_relaciones(db).filter(Certificado.id == solicitud_id).first()
    if not certificado:
        raise NotFoundError("Certificado no encontrado")
    return certificado


# --- Tipos de certificado ---

def listar_tipos(db: Session, solo_activos: bool = True) -> List[TipoCertificado]:
    query = db.query(TipoCertificado)
    if solo_activos:
        query = query.filter(TipoCertificado.activo.is_(True))
    return query.order_by(TipoCertificado.nombre).all()


def crear_tipo(db: Session, rol: Rol, datos: dict) -> TipoCertificado:
    if not gate.puede_gestionar_tipos(rol):
        raise AuthorizationError("No autorizado para gestionar tipos de certificado")
    tipo = TipoCertificado(**datos)
    db.add(tipo)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Ya existe un tipo de certificado con ese nombre")
    db.refresh(tipo)
    logger.info(f"Tipo de certificado creado: {tipo.id}")
    return tipo


def actualizar_tipo(db: Session, tipo_id: int, rol: Rol, cambios: dict) -> TipoCertificado:
    if not gate.puede_gestionar_tipos(rol):
        raise AuthorizationError("No autorizado para gestionar tipos de certificado")
    tipo = db.query(TipoCertificado).filter(TipoCertificado.id == tipo_id).first()
    if not tipo:
        raise NotFoundError("Tipo de certificado no encontrado")
    if not cambios:
        raise ValidationError("No hay campos válidos para actualizar")
    for campo, valor in cambios.items():
        setattr(tipo, campo, valor)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Ya existe un tipo de certificado con ese nombre")
    db.refresh(tipo)
    logger.info(f"Tipo de certificado actualizado: {tipo.id}")
    return tipo


# --- Ciclo de vida de la solicitud ---

def crear_solicitud(
    db: Session,
    user_id: int,
    certificate_type_id: Optional[int],
    observaciones: Optional[str] = None,
) -> Certificado:
    if not certificate_type_id:
        raise ValidationError("certificate_type_id es requerido")

    tipo = db.query(TipoCertificado).filter(TipoCertificado.id == certificate_type_id).first()
    if not tipo:
        raise NotFoundError("Tipo de certificado no encontrado")
    if not tipo.activo:
        raise ValidationError("El tipo de certificado no está disponible")

    certificado = Certificado(
        user_id=user_id,
        certificate_type_id=tipo.id,
        estado=EstadoCertificado.PENDIENTE,
        fecha_solicitud=ahora_utc(),
        observaciones=observaciones or None,
    )
    db.add(certificado)
    db.flush()  # Para obtener el ID antes de notificar

    # La solicitud y su notificación se confirman juntas
    notificar(
        db,
        user_id,
        TipoNotificacion.INFO,
        "Solicitud Creada",
        f"Tu solicitud de {tipo.nombre} ha sido registrada.",
        commit=False,
    )
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creando certificado: {e}")
        raise StorageError("No se pudo registrar la solicitud", status_code=400)

    logger.info(f"Certificado creado: {certificado.id}")
    return _buscar(db, certificado.id)


def obtener_solicitud(db: Session, solicitud_id: int, caller_id: int, rol: Rol) -> Certificado:
    certificado = _buscar(db, solicitud_id)
    if not gate.puede_ver_solicitud(rol, certificado.user_id, caller_id):
        raise AuthorizationError("No autorizado")
    return certificado


def cambiar_estado(db: Session, solicitud_id: int, rol: Rol, cambios: dict) -> Certificado:
    """
    Aplica una actualización de staff sobre la solicitud.

    Solo se persisten los campos de CAMPOS_MODIFICABLES. Las fechas de
    procesamiento y entrega se completan solas al pasar a en_proceso y
    completado, salvo que ya tengan valor o vengan en el cambio.
    """
    if not gate.puede_cambiar_estado(rol):
        raise AuthorizationError("No autorizado para actualizar certificados")

    certificado = _buscar(db, solicitud_id)
    filtrados = {
        campo: valor
        for campo, valor in cambios.items()
        if campo in CAMPOS_MODIFICABLES and not (campo in CAMPOS_FECHA and valor is None)
    }

    estado_anterior = certificado.estado
    nuevo_estado = estado_anterior
    if filtrados.get("estado") is not None:
        nuevo_estado = parsear_estado(filtrados["estado"])
        if not transicion_permitida(estado_anterior, nuevo_estado):
            raise ValidationError(
                f"Transición no permitida: {estado_anterior.value} -> {nuevo_estado.value}"
            )
    filtrados["estado"] = nuevo_estado

    fecha_solicitud = como_utc(certificado.fecha_solicitud)

    if nuevo_estado == EstadoCertificado.EN_PROCESO and not filtrados.get("fecha_procesamiento"):
        if certificado.fecha_procesamiento is None:
            filtrados["fecha_procesamiento"] = ahora_utc()
    if nuevo_estado == EstadoCertificado.COMPLETADO and not filtrados.get("fecha_entrega"):
        if certificado.fecha_entrega is None:
            filtrados["fecha_entrega"] = ahora_utc()

    fecha_procesamiento = como_utc(filtrados.get("fecha_procesamiento"))
    if fecha_procesamiento and fecha_procesamiento < fecha_solicitud:
        raise ValidationError("fecha_procesamiento no puede ser anterior a la fecha de solicitud")

    fecha_entrega = como_utc(filtrados.get("fecha_entrega"))
    if fecha_entrega:
        if nuevo_estado != EstadoCertificado.COMPLETADO:
            raise ValidationError("fecha_entrega solo se registra con estado completado")
        if fecha_entrega < fecha_solicitud:
            raise ValidationError("fecha_entrega no puede ser anterior a la fecha de solicitud")

    for campo, valor in filtrados.items():
        if campo in CAMPOS_FECHA:
            valor = como_utc(valor)
        setattr(certificado, campo, valor)

    if nuevo_estado != estado_anterior:
        frase = MENSAJES_ESTADO.get(nuevo_estado, "ha sido actualizada")
        notificar(
            db,
            certificado.user_id,
            TipoNotificacion.ERROR if nuevo_estado == EstadoCertificado.RECHAZADO else TipoNotificacion.SUCCESS,
            "Actualización de Solicitud",
            f"Tu solicitud de {certificado.tipo.nombre} {frase}.",
            commit=False,
        )

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error actualizando certificado {solicitud_id}: {e}")
        raise StorageError("No se pudo actualizar el certificado", status_code=400)

    logger.info(f"Certificado actualizado: {certificado.id} ({estado_anterior.value} -> {nuevo_estado.value})")
    return _buscar(db, certificado.id)


def eliminar_solicitud(db: Session, solicitud_id: int, caller_id: int, rol: Rol) -> None:
    certificado = db.query(Certificado).filter(Certificado.id == solicitud_id).first()
    if not certificado:
        raise NotFoundError("Certificado no encontrado")

    es_dueno = certificado.user_id == caller_id
    if not gate.puede_eliminar_solicitud(rol, certificado.estado, es_dueno):
        if es_dueno:
            raise AuthorizationError("Solo se pueden eliminar solicitudes pendientes")
        raise AuthorizationError("No autorizado")

    public_id = certificado.archivo_public_id
    db.delete(certificado)
    db.commit()
    logger.info(f"Certificado eliminado: {solicitud_id}")

    if public_id:
        storage_service.remove_best_effort(
            storage_service.BUCKET_CERTIFICADOS,
            storage_service.key_desde_public_id(storage_service.BUCKET_CERTIFICADOS, public_id),
        )


def listar_solicitudes(
    db: Session,
    caller_id: int,
    rol: Rol,
    estado: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Certificado], int]:
    query = _query_con_relaciones(db)

    # Quien no es staff solo ve sus propias solicitudes
    if not gate.es_staff(rol):
        query = query.filter(Certificado.user_id == caller_id)

    if estado:
        query = query.filter(Certificado.estado == parsear_estado(estado))

    total = query.count()
    filas = (
        query.order_by(Certificado.fecha_solicitud.desc(), Certificado.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return filas, total


def validar_pdf(data: bytes) -> int:
    """Devuelve la cantidad de páginas; falla si el contenido no es un PDF legible."""
    try:
        reader = PdfReader(BytesIO(data))
        paginas = len(reader.pages)
    except (PdfReadError, ValueError) as e:
        logger.warning(f"PDF inválido recibido: {e}")
        raise ValidationError("El archivo no es un PDF válido")
    if paginas == 0:
        raise ValidationError("El PDF no tiene páginas")
    return paginas


def adjuntar_certificado(
    db: Session,
    solicitud_id: int,
    rol: Rol,
    filename: Optional[str],
    data: bytes,
) -> Certificado:
    """Sube el PDF emitido al bucket de certificados y lo enlaza a la solicitud."""
    if not gate.puede_cambiar_estado(rol):
        raise AuthorizationError("No autorizado para actualizar certificados")
    certificado = _buscar(db, solicitud_id)
    if certificado.estado == EstadoCertificado.RECHAZADO:
        raise ValidationError("No se puede adjuntar un archivo a una solicitud rechazada")

    validar_pdf(data)
    key, url = storage_service.subir_archivo(
        storage_service.BUCKET_CERTIFICADOS, certificado.user_id, filename or "certificado.pdf", data, "application/pdf"
    )

    anterior = certificado.archivo_public_id
    certificado.archivo_url = url
    certificado.archivo_public_id = storage_service.public_id_para(storage_service.BUCKET_CERTIFICADOS, key)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error guardando archivo del certificado {solicitud_id}: {e}")
        storage_service.remove_best_effort(storage_service.BUCKET_CERTIFICADOS, key)
        raise StorageError("No se pudo guardar el archivo del certificado")

    if anterior:
        storage_service.remove_best_effort(
            storage_service.BUCKET_CERTIFICADOS,
            storage_service.key_desde_public_id(storage_service.BUCKET_CERTIFICADOS, anterior),
        )
    logger.info(f"Archivo adjuntado al certificado {solicitud_id}: {url}")
    return _buscar(db, certificado.id)
