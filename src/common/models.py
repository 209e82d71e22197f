import typing as t
import uuid

from django.core.exceptions import ValidationError
from django.db import models


class TimeStampedModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        abstract = True

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Override the save method to call full_clean before saving."""
        self.full_clean()
        super().save(*args, **kwargs)


class AppendOnlyModel(models.Model):
    """Write-once audit row.

    Rows are inserted once and never updated or deleted by the application.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        abstract = True

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Insert the row, refusing to overwrite an existing one."""
        if not self._state.adding:
            raise ValidationError(f"{type(self).__name__} rows are append-only.")
        self.full_clean()
        kwargs["force_insert"] = True
        super().save(*args, **kwargs)

    def delete(self, *args: t.Any, **kwargs: t.Any) -> t.Any:
        """Audit rows are never deleted."""
        raise ValidationError(f"{type(self).__name__} rows are append-only.")
