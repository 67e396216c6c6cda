from .base import EntityCrud

__all__ = ["EntityCrud"]
