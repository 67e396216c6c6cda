"""
Test helpers for the DynamoDB CRUD test suite.
"""

from .entities import Person

__all__ = ["Person"]
