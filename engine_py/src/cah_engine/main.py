"""FastAPI main application for the Cards Against Humanity backend"""

import logging

from .settings import ServerSettings
from .ws.server import create_app

settings = ServerSettings.from_env()

# Configure logging
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = create_app(settings=settings)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
