"""Data access objects: the only code that issues queries against DBStorage."""
from models.dao.user_dao import UserDAO
from models.dao.refresh_token_dao import RefreshTokenDAO
from models.dao.progress_dao import ProgressDAO

__all__ = ["UserDAO", "RefreshTokenDAO", "ProgressDAO"]
