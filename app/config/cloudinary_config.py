import cloudinary

# Las credenciales se leen de la variable de entorno CLOUDINARY_URL
cloudinary.config(
    secure=True
)


def credenciales():
    """Devuelve (cloud_name, api_key, api_secret) de la configuración activa."""
    config = cloudinary.config()
    return config.cloud_name, config.api_key, config.api_secret
