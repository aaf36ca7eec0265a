import os

# Configuración leída del entorno
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./portal.db")

SECRET_KEY = os.getenv("SECRET_KEY", "development-secret-key")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

# Carpeta raíz en Cloudinary; cada bucket es una subcarpeta
CLOUDINARY_ROOT_FOLDER = os.getenv("CLOUDINARY_ROOT_FOLDER", "portal-certificados")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEBUG = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Administrador inicial (opcional)
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
