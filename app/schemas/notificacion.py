from datetime import datetime
from app.models.notificacion import TipoNotificacion
from app.schemas.common import ORMModel


class NotificacionOut(ORMModel):
    id: int
    user_id: int
    tipo: TipoNotificacion
    titulo: str
    mensaje: str
    leida: bool
    created_at: datetime
