# backend/wsgi.py
from gymadmin import create_app

app = create_app()
