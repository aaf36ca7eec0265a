import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import AuthenticationError
from app.models.rol_usuario import Rol
from app.services.auth_service import usuario_desde_token
from app.services.autorizacion_service import resolver_rol

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContextoUsuario:
    """Quién hace el request; se pasa explícitamente a cada servicio."""
    user_id: int
    email: str
    rol: Rol


def get_contexto(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> ContextoUsuario:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Token de autorización requerido")
    usuario = usuario_desde_token(db, credentials.credentials)
    return ContextoUsuario(user_id=usuario.id, email=usuario.email, rol=resolver_rol(db, usuario.id))


def get_contexto_opcional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[ContextoUsuario]:
    if not credentials:
        return None
    return get_contexto(credentials=credentials, db=db)
