"""
asgi.py -- ASGI entry point for RoleKeeper.

Settings are read here, once, and passed into the app factory. Importing this
module without SECRET_KEY / DATABASE_URL raises, so uvicorn fails to load the
app instead of serving unsigned or unbacked requests.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
