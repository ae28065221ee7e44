from app.db.models.category import Category
from app.db.models.listing import Listing
from app.db.models.user import User

__all__ = ["User", "Listing", "Category"]
