"""
asgi.py -- Application assembly for the college auth API.

Run with:  uvicorn asgi:app --reload
           python asgi.py
"""

import uvicorn

from api.main import app, settings

if __name__ == "__main__":
    uvicorn.run("asgi:app", host=settings.host, port=settings.port, reload=settings.debug)
