import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import cloudinary_config  # noqa: F401
from app.config import settings
from app.database import Base, SessionLocal, engine
from app.errors import register_exception_handlers
# importación de las rutas
from app.routers import admin
from app.routers import auth
from app.routers import certificados
from app.routers import documentos
from app.routers import notificaciones
from app.routers import perfil
from app.routers import stats
# importación de los modelos
from app.models.usuario import Usuario
from app.models.rol_usuario import RolUsuario
from app.models.perfil import Perfil
from app.models.tipo_certificado import TipoCertificado
from app.models.certificado import Certificado
from app.models.categoria_documento import CategoriaDocumento
from app.models.documento import Documento
from app.models.notificacion import Notificacion
from app.services.seed_service import sembrar_admin, sembrar_datos_referencia

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Crear tablas (para producción usar migraciones)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        sembrar_datos_referencia(db)
        if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
            sembrar_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    finally:
        db.close()
    logger.info("Portal de certificados iniciado")
    yield


app = FastAPI(
    title="Portal de Certificados",
    description="Solicitudes de certificados, documentos, notificaciones y perfiles.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(certificados.router)
app.include_router(documentos.router)
app.include_router(notificaciones.router)
app.include_router(perfil.router)
app.include_router(stats.router)
app.include_router(admin.router)


@app.get("/")
def home():
    return {"message": "API funcionando!"}
