"""
Identidad del portal: registro, login y tokens de acceso.

Los tokens son JWT HS256 firmados con SECRET_KEY; el subject es el id del
usuario. El rol no viaja en el token, se resuelve en cada request para que
un cambio de rol aplique de inmediato.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from app.models.perfil import Perfil
from app.models.rol_usuario import Rol, RolUsuario
from app.models.usuario import Usuario
from app.services import autorizacion_service as gate

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGORITHM = "HS256"
PASSWORD_MIN_LENGTH = 6

# Roles que cualquiera puede pedir al registrarse
ROLES_AUTOREGISTRO = (Rol.APRENDIZ, Rol.INSTRUCTOR)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        if "expired" in str(e).lower():
            raise AuthenticationError("Token expirado")
        raise AuthenticationError("Token inválido")
    if not payload.get("sub"):
        raise AuthenticationError("Token inválido")
    return payload


def usuario_desde_token(db: Session, token: str) -> Usuario:
    payload = decode_access_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Token inválido")
    usuario = db.query(Usuario).filter(Usuario.id == user_id).first()
    if not usuario or not usuario.activo:
        raise AuthenticationError("Token inválido")
    return usuario


def _validar_password(password: Optional[str]) -> None:
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"La contraseña debe tener al menos {PASSWORD_MIN_LENGTH} caracteres")


def registrar_usuario(
    db: Session,
    email: Optional[str],
    password: Optional[str],
    numero_identificacion: Optional[str],
    nombres: Optional[str],
    apellidos: Optional[str],
    telefono: Optional[str] = None,
    role: Optional[str] = None,
    rol_solicitante: Optional[Rol] = None,
) -> Usuario:
    """
    Crea identidad, perfil y rol en una sola transacción.

    rol_solicitante es el rol de quien hace el registro cuando está
    autenticado; solo un admin puede crear cuentas de staff.
    """
    if not email or not password or not numero_identificacion or not nombres or not apellidos:
        raise ValidationError("Campos requeridos: email, password, numero_identificacion, nombres, apellidos")
    email = email.strip().lower()
    if "@" not in email:
        raise ValidationError("Email inválido")
    _validar_password(password)

    try:
        rol = gate.parsear_rol(role or Rol.APRENDIZ.value)
    except ValueError:
        raise ValidationError(f"Rol inválido: {role}")
    if rol not in ROLES_AUTOREGISTRO and not (rol_solicitante and gate.es_admin(rol_solicitante)):
        raise AuthorizationError("Solo un administrador puede asignar roles de staff")

    if db.query(Usuario).filter(Usuario.email == email).first():
        raise ValidationError("El email ya está registrado")
    if db.query(Perfil).filter(Perfil.numero_identificacion == numero_identificacion).first():
        raise ValidationError("El número de identificación ya está registrado")

    usuario = Usuario(email=email, password_hash=hash_password(password))
    usuario.perfil = Perfil(
        numero_identificacion=numero_identificacion,
        nombres=nombres,
        apellidos=apellidos,
        email=email,
        telefono=telefono or None,
    )
    usuario.rol = RolUsuario(role=rol)
    db.add(usuario)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("El usuario ya existe")
    db.refresh(usuario)
    logger.info(f"Usuario registrado: {usuario.id} ({rol.value})")
    return usuario


def autenticar(db: Session, email: Optional[str], password: Optional[str]) -> Usuario:
    if not email or not password:
        raise ValidationError("Email y password son requeridos")
    usuario = db.query(Usuario).filter(Usuario.email == email.strip().lower()).first()
    if not usuario or not usuario.activo or not verify_password(password, usuario.password_hash):
        logger.warning("Intento de login con credenciales inválidas")
        raise AuthenticationError("Credenciales inválidas")
    logger.info(f"Usuario inició sesión: {usuario.id}")
    return usuario


def cambiar_password(db: Session, user_id: int, nueva: Optional[str]) -> None:
    _validar_password(nueva)
    usuario = db.query(Usuario).filter(Usuario.id == user_id).first()
    if not usuario:
        raise NotFoundError("Usuario no encontrado")
    usuario.password_hash = hash_password(nueva)
    db.commit()
    logger.info(f"Contraseña cambiada para usuario: {user_id}")


def asignar_rol(db: Session, rol_admin: Rol, user_id: int, role: str) -> RolUsuario:
    if not gate.es_admin(rol_admin):
        raise AuthorizationError("Solo un administrador puede cambiar roles")
    try:
        rol = gate.parsear_rol(role)
    except ValueError:
        raise ValidationError(f"Rol inválido: {role}")
    if not db.query(Usuario).filter(Usuario.id == user_id).first():
        raise NotFoundError("Usuario no encontrado")

    fila = db.query(RolUsuario).filter(RolUsuario.user_id == user_id).first()
    if fila:
        fila.role = rol
    else:
        fila = RolUsuario(user_id=user_id, role=rol)
        db.add(fila)
    db.commit()
    db.refresh(fila)
    logger.info(f"Rol de usuario {user_id} cambiado a {rol.value}")
    return fila
