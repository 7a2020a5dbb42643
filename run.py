#!/usr/bin/env python3
"""
Run script for the ChatRelay webhook
"""
import uvicorn

from chatrelay.config.settings import settings
from chatrelay.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)
