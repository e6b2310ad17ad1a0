"""
Flask-Migrate / Alembic entry point.

Usage:
    flask db upgrade
    flask set-role admin@example.org PlatformAdmin
"""

from advocacy import create_app

app = create_app()
