from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import ContextoUsuario, get_contexto
from app.schemas.documento import CategoriaOut, DocumentoInput, DocumentoOut, DocumentoPatch
from app.services import documento_service
from app.services.storage_service import leer_upload

router = APIRouter(prefix="/documents", tags=["Documentos"])


@router.get("/categories")
def listar_categorias_endpoint(
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    categorias = documento_service.listar_categorias(db)
    return {"data": [CategoriaOut.model_validate(c) for c in categorias]}


@router.get("")
def listar_documentos_endpoint(
    category_id: Optional[int] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Texto a buscar en el nombre"),
    limit: int = Query(default=50, ge=1),
    offset: int = Query(default=0, ge=0),
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    filas, total = documento_service.listar_documentos(
        db, contexto.user_id, contexto.rol, category_id=category_id, search=search, limit=limit, offset=offset
    )
    return {"data": [DocumentoOut.model_validate(d) for d in filas], "count": total}


@router.post("", status_code=status.HTTP_201_CREATED)
def crear_documento_endpoint(
    payload: DocumentoInput,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    documento = documento_service.crear_documento(
        db,
        contexto.user_id,
        payload.nombre,
        payload.archivo_url,
        descripcion=payload.descripcion,
        category_id=payload.category_id,
        tamano_bytes=payload.tamano_bytes,
        tipo_mime=payload.tipo_mime,
        etiquetas=payload.etiquetas,
    )
    return {"message": "Documento creado exitosamente", "data": DocumentoOut.model_validate(documento)}


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def subir_documento_endpoint(
    file: UploadFile = File(...),
    nombre: Optional[str] = Form(default=None, description="Nombre visible; por defecto el del archivo"),
    descripcion: Optional[str] = Form(default=None),
    category_id: Optional[int] = Form(default=None),
    etiquetas: Optional[str] = Form(default=None, description="Etiquetas separadas por coma"),
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    contenido = await leer_upload(file)
    documento = documento_service.subir_documento(
        db,
        contexto.user_id,
        file.filename,
        contenido,
        content_type=file.content_type,
        nombre=nombre,
        descripcion=descripcion,
        category_id=category_id,
        etiquetas=etiquetas.split(",") if etiquetas else None,
    )
    return {"message": "Documento creado exitosamente", "data": DocumentoOut.model_validate(documento)}


@router.get("/{documento_id}")
def obtener_documento_endpoint(
    documento_id: int,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    documento = documento_service.obtener_documento(db, documento_id, contexto.user_id, contexto.rol)
    return {"data": DocumentoOut.model_validate(documento)}


@router.put("/{documento_id}")
def actualizar_documento_endpoint(
    documento_id: int,
    payload: DocumentoPatch,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    documento = documento_service.actualizar_documento(db, documento_id, contexto.user_id, payload.cambios())
    return {"message": "Documento actualizado", "data": DocumentoOut.model_validate(documento)}


@router.delete("/{documento_id}")
def eliminar_documento_endpoint(
    documento_id: int,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    documento_service.eliminar_documento(db, documento_id, contexto.user_id, contexto.rol)
    return {"message": "Documento eliminado"}
