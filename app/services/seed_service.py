import logging

from sqlalchemy.orm import Session

from app.models.categoria_documento import CategoriaDocumento
from app.models.rol_usuario import Rol
from app.models.tipo_certificado import TipoCertificado
from app.models.usuario import Usuario
from app.services.auth_service import registrar_usuario

logger = logging.getLogger(__name__)

CATEGORIAS_INICIALES = [
    ("Certificados", "Certificados emitidos por la institución"),
    ("Constancias", "Constancias de estudio y matrícula"),
    ("Cartas", "Cartas de recomendación y presentación"),
    ("Documentos Personales", "Documentos de identidad y fotografías"),
]

TIPOS_INICIALES = [
    ("Certificado Académico", "Certificado de notas y desempeño académico", 5),
    ("Constancia de Estudio", "Constancia de matrícula vigente", 2),
    ("Certificado de Finalización", "Certificado de culminación de formación", 10),
]


def sembrar_datos_referencia(db: Session) -> None:
    """Carga categorías y tipos de certificado si las tablas están vacías."""
    if not db.query(CategoriaDocumento).first():
        for nombre, descripcion in CATEGORIAS_INICIALES:
            db.add(CategoriaDocumento(nombre=nombre, descripcion=descripcion))
        logger.info(f"{len(CATEGORIAS_INICIALES)} categorías de documento creadas")
    if not db.query(TipoCertificado).first():
        for nombre, descripcion, dias in TIPOS_INICIALES:
            db.add(TipoCertificado(nombre=nombre, descripcion=descripcion, activo=True, tiempo_procesamiento_dias=dias))
        logger.info(f"{len(TIPOS_INICIALES)} tipos de certificado creados")
    db.commit()


def sembrar_admin(db: Session, email: str, password: str) -> None:
    if db.query(Usuario).filter(Usuario.email == email.strip().lower()).first():
        return
    registrar_usuario(
        db,
        email=email,
        password=password,
        numero_identificacion=f"admin-{email}",
        nombres="Administrador",
        apellidos="del Portal",
        role=Rol.ADMIN.value,
        rol_solicitante=Rol.ADMIN,
    )
    logger.info(f"Administrador inicial creado: {email}")
