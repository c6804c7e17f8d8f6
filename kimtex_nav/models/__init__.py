"""
Kimtex ERP Navigation Service
SQLAlchemy database handle shared by all models.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
