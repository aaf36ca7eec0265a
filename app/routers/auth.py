from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import ContextoUsuario, get_contexto, get_contexto_opcional
from app.schemas.auth import LoginInput, RegistroInput
from app.schemas.perfil import PerfilOut
from app.services import auth_service
from app.services.autorizacion_service import resolver_rol
from app.services.perfil_service import obtener_perfil

router = APIRouter(prefix="/auth", tags=["Autenticación"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def registrar_endpoint(
    payload: RegistroInput,
    db: Session = Depends(get_db),
    contexto: Optional[ContextoUsuario] = Depends(get_contexto_opcional),
):
    usuario = auth_service.registrar_usuario(
        db,
        email=payload.email,
        password=payload.password,
        numero_identificacion=payload.numero_identificacion,
        nombres=payload.nombres,
        apellidos=payload.apellidos,
        telefono=payload.telefono,
        role=payload.role,
        rol_solicitante=contexto.rol if contexto else None,
    )
    return {
        "message": "Usuario registrado exitosamente",
        "user": {"id": usuario.id, "email": usuario.email},
    }


@router.post("/login")
def login_endpoint(payload: LoginInput, db: Session = Depends(get_db)):
    usuario = auth_service.autenticar(db, payload.email, payload.password)
    token = auth_service.create_access_token(usuario.id)
    return {
        "message": "Login exitoso",
        "user": {"id": usuario.id, "email": usuario.email},
        "profile": PerfilOut.model_validate(usuario.perfil) if usuario.perfil else None,
        "role": resolver_rol(db, usuario.id).value,
        "session": {"access_token": token, "token_type": "bearer"},
    }


@router.post("/logout")
def logout_endpoint(contexto: ContextoUsuario = Depends(get_contexto)):
    # Los tokens no guardan estado en el servidor; el cliente descarta el suyo
    return {"message": "Sesión cerrada exitosamente"}


@router.get("/me")
def me_endpoint(contexto: ContextoUsuario = Depends(get_contexto), db: Session = Depends(get_db)):
    perfil = obtener_perfil(db, contexto.user_id)
    return {
        "user": {"id": contexto.user_id, "email": contexto.email},
        "profile": PerfilOut.model_validate(perfil),
        "role": contexto.rol.value,
    }
