# backend/wsgi.py
from casinobar import create_app

app = create_app()
