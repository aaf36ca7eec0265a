from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import ContextoUsuario, get_contexto
from app.schemas.perfil import CambioPasswordInput, PerfilOut, PerfilPatch
from app.services import perfil_service
from app.services.auth_service import cambiar_password
from app.services.storage_service import leer_upload

router = APIRouter(prefix="/profile", tags=["Perfil"])


def _con_rol(perfil, contexto: ContextoUsuario) -> dict:
    data = PerfilOut.model_validate(perfil).model_dump()
    data["role"] = contexto.rol.value
    return data


@router.get("")
def obtener_perfil_endpoint(contexto: ContextoUsuario = Depends(get_contexto), db: Session = Depends(get_db)):
    perfil = perfil_service.obtener_perfil(db, contexto.user_id)
    return {"data": _con_rol(perfil, contexto)}


@router.put("")
def actualizar_perfil_endpoint(
    payload: PerfilPatch,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    perfil = perfil_service.actualizar_perfil(db, contexto.user_id, payload.cambios())
    return {"message": "Perfil actualizado", "data": _con_rol(perfil, contexto)}


@router.post("/change-password")
def cambiar_password_endpoint(
    payload: CambioPasswordInput,
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    cambiar_password(db, contexto.user_id, payload.new_password)
    return {"message": "Contraseña actualizada exitosamente"}


@router.post("/avatar")
async def subir_avatar_endpoint(
    file: UploadFile = File(...),
    contexto: ContextoUsuario = Depends(get_contexto),
    db: Session = Depends(get_db),
):
    contenido = await leer_upload(file)
    perfil = perfil_service.subir_avatar(db, contexto.user_id, file.filename, contenido, file.content_type)
    return {"message": "Avatar actualizado", "data": _con_rol(perfil, contexto)}
