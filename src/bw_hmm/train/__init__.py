"""
Training module.

Persistence of trained estimators.
"""

from .persistence import ModelPersistence

__all__ = [
    "ModelPersistence"
]
