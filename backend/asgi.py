# backend/asgi.py
from dotenv import load_dotenv

from main import create_app

load_dotenv()

app = create_app()
