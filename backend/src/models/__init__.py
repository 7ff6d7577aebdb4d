"""SQLAlchemy models."""
from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.tag import Tag, prompt_tags  # Must be before prompt due to import
from models.prompt_version import PromptVersion
from models.prompt import Prompt
from models.category import Category
from models.collection import Collection, CollectionPrompt
from models.user import User

__all__ = [
    "Base",
    "Category",
    "Collection",
    "CollectionPrompt",
    "Prompt",
    "PromptVersion",
    "Tag",
    "TimestampMixin",
    "UUIDv7Mixin",
    "User",
    "prompt_tags",
]
