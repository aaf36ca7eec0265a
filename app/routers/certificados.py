from typing import Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import ContextoUsuario, get_contexto
from app.schemas.certificado import (
    CertificadoInput,
    CertificadoOut,
    CertificadoPatch,
    TipoCertificadoInput,
    TipoCertificadoOut,
    TipoCertificadoPatch,
)
from app.services import certificado_service
from app.services.autorizacion_service import es_staff
from app.services.storage_service import leer_upload

router = APIRouter(prefix="/certificates", tags=["Certificados"])


@router.get("/types")
def listar_tipos_endpoint(
    incluir_inactivos: bool = Query(default=False, description="Solo staff: incluir tipos inactivos"),
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    solo_activos = not (incluir_inactivos and es_staff(contexto.rol))
    tipos = certificado_service.listar_tipos(db, solo_activos=solo_activos)
    return {"data": [TipoCertificadoOut.model_validate(t) for t in tipos]}


@router.post("/types", status_code=status.HTTP_201_CREATED)
def crear_tipo_endpoint(
    payload: TipoCertificadoInput,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    tipo = certificado_service.crear_tipo(db, contexto.rol, payload.model_dump())
    return {"message": "Tipo de certificado creado", "data": TipoCertificadoOut.model_validate(tipo)}


@router.put("/types/{tipo_id}")
def actualizar_tipo_endpoint(
    tipo_id: int,
    payload: TipoCertificadoPatch,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    tipo = certificado_service.actualizar_tipo(db, tipo_id, contexto.rol, payload.cambios())
    return {"message": "Tipo de certificado actualizado", "data": TipoCertificadoOut.model_validate(tipo)}


@router.get("")
def listar_certificados_endpoint(
    estado: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1),
    offset: int = Query(default=0, ge=0),
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    filas, total = certificado_service.listar_solicitudes(
        db, contexto.user_id, contexto.rol, estado=estado, limit=limit, offset=offset
    )
    return {"data": [CertificadoOut.model_validate(c) for c in filas], "count": total}


@router.post("", status_code=status.HTTP_201_CREATED)
def crear_certificado_endpoint(
    payload: CertificadoInput,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    certificado = certificado_service.crear_solicitud(
        db, contexto.user_id, payload.certificate_type_id, payload.observaciones
    )
    return {"message": "Solicitud creada exitosamente", "data": CertificadoOut.model_validate(certificado)}


@router.get("/{certificado_id}")
def obtener_certificado_endpoint(
    certificado_id: int,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    certificado = certificado_service.obtener_solicitud(db, certificado_id, contexto.user_id, contexto.rol)
    return {"data": CertificadoOut.model_validate(certificado)}


@router.put("/{certificado_id}")
def actualizar_certificado_endpoint(
    certificado_id: int,
    payload: CertificadoPatch,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    certificado = certificado_service.cambiar_estado(db, certificado_id, contexto.rol, payload.cambios())
    return {"message": "Certificado actualizado", "data": CertificadoOut.model_validate(certificado)}


@router.delete("/{certificado_id}")
def eliminar_certificado_endpoint(
    certificado_id: int,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    certificado_service.eliminar_solicitud(db, certificado_id, contexto.user_id, contexto.rol)
    return {"message": "Certificado eliminado"}


@router.post("/{certificado_id}/archivo")
async def adjuntar_archivo_endpoint(
    certificado_id: int,
    file: UploadFile = File(...),
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    contenido = await leer_upload(file)
    certificado = certificado_service.adjuntar_certificado(
        db, certificado_id, contexto.rol, file.filename, contenido
    )
    return {"message": "Archivo del certificado cargado", "data": CertificadoOut.model_validate(certificado)}
