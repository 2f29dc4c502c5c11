# gunicorn apps.draft_orders.wsgi:app
from .app import create_app

app = create_app()
