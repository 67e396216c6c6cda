from .config import StoreConfig

__all__ = ["StoreConfig"]
