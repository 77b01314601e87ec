"""Entry point for running the API server."""
import uvicorn

from api.main import create_app
from core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
