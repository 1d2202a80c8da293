"""User-invoked commands of reviewsuite."""

from reviewsuite.commands.review import ReviewCommand

__all__ = ["ReviewCommand"]
