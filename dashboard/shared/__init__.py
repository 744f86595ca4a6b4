"""Shared model mixins and the demo data seeder."""

from dashboard.shared.models import CreatedAtMixin, UpdatedAtMixin

__all__ = [
    "CreatedAtMixin",
    "UpdatedAtMixin",
]
