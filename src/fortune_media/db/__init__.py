"""Database models and helpers."""

from .db_models import Base, FortuneMediaModel, FortuneModel, ProfileModel, SubscriptionModel

__all__ = [
    "Base",
    "FortuneMediaModel",
    "FortuneModel",
    "ProfileModel",
    "SubscriptionModel",
]
