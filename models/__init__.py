"""
Persistence layer: SQLAlchemy models, DBStorage and the DAOs built on it.
There is no module-level storage instance; the application factory builds
one DBStorage and hands it to each DAO.
"""
from models.db_storage import DBStorage

__all__ = ["DBStorage"]
