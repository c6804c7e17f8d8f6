"""
WSGI entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi seed-reference-data --demo-users
"""

from kimtex_nav import create_app

app = create_app()
