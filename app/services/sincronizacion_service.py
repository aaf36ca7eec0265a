import logging
import aiohttp
from sqlalchemy.orm import Session
from app.config.cloudinary_config import credenciales
from app.models.documento import Documento

logger = logging.getLogger(__name__)


async def archivo_existe_cloudinary(public_id: str) -> bool:
    cloud_name, api_key, api_secret = credenciales()
    url = f"https://api.cloudinary.com/v1_1/{cloud_name}/resources/raw/upload"
    params = {"public_ids[]": public_id}
    auth = aiohttp.BasicAuth(api_key, api_secret)
    async with aiohttp.ClientSession(auth=auth) as session:
        async with session.get(url, params=params) as resp:
            if resp.status != 200:
                # Ante un error de la API no se borra nada
                logger.warning(f"Cloudinary respondió {resp.status} al consultar {public_id}")
                return True
            data = await resp.json()
            return bool(data.get("resources"))


async def sincronizar_documentos(db: Session):
    """Elimina de la base los documentos cuyo archivo ya no existe en Cloudinary."""
    removidos = []

    documentos = db.query(Documento).filter(Documento.public_id.isnot(None)).all()
    for doc in documentos:
        existe = await archivo_existe_cloudinary(doc.public_id)
        if not existe:
            logger.info(f"Eliminando de la base documento huérfano: {doc.id} ({doc.public_id})")
            db.delete(doc)
            removidos.append(doc.id)

    db.commit()
    return {
        "documentos_revisados": len(documentos),
        "documentos_removidos": removidos,
    }
