"""ORM models."""

from fairdraw.models.draw import DrawRow

__all__ = ["DrawRow"]
