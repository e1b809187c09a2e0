"""
WSGI / Flask-Migrate entry point.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi seed-pre-assigned-roles admin@example.com:SUPER_ADMIN
    gunicorn wsgi:app
"""

from onboarding import create_app

app = create_app()
