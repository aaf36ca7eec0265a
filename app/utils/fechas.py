from datetime import datetime, timezone
from typing import Optional


def ahora_utc() -> datetime:
    return datetime.now(timezone.utc)


def como_utc(valor: Optional[datetime]) -> Optional[datetime]:
    """SQLite devuelve fechas sin zona; se asumen en UTC."""
    if valor is None:
        return None
    if valor.tzinfo is None:
        return valor.replace(tzinfo=timezone.utc)
    return valor.astimezone(timezone.utc)
