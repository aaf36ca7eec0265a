from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import ContextoUsuario, get_contexto
from app.services.stats_service import obtener_estadisticas

router = APIRouter(prefix="/stats", tags=["Estadísticas"])


@router.get("")
def estadisticas_endpoint(contexto: ContextoUsuario = Depends(get_contexto), db: Session = Depends(get_db)):
    return {"data": obtener_estadisticas(db, contexto.user_id, contexto.rol)}
