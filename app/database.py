# app/database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.settings import DATABASE_URL


def crear_engine(url: str):
    if url.startswith("sqlite"):
        # SQLite en memoria necesita una única conexión compartida
        if url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


# Creación del engine de conexión con la base
engine = crear_engine(DATABASE_URL)

# Fábrica de sesiones
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base para los modelos ORM
Base = declarative_base()

# Sesión por request (para usar en las rutas)
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
