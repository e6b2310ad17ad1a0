"""
Advocacy Hub — SQLAlchemy models.

The shared ``db`` handle is created here and bound to the app in
``create_app``.  Model modules import it from this package.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
