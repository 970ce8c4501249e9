from sign_inventory.core.db.base import Base

__all__ = ["Base"]
