"""
================================================================================
CAMPUS FEED - DATABASE MODELS
================================================================================

@file        models.py
@description Backing table for the "database" document store backend

MODULE PURPOSE
================================================================================
The feed keeps its entities (users, posts, comments, messages) as ordered
document collections, not as relational tables. When FEED_STORE_BACKEND is
"database" each collection is one Collection row whose ``records`` column
holds the whole ordered list.

There are no foreign keys: relations such as
Post.authorEmail -> User are resolved by identity-key lookup at read time
(see feed/directory.py and feed/posts.py).

ROW LAYOUT
================================================================================
Collection
    name        "users" | "posts" | "comments" | "messages"
    records     JSON list of plain dict records, storage order preserved
    updated_at  last save

================================================================================
"""

from django.db import models


class Collection(models.Model):
    """
    One named, ordered list of JSON records.

    Attributes:
        name (CharField): Collection name, unique
        records (JSONField): Ordered list of records
        updated_at (DateTimeField): Timestamp of the last save

    Example:
        row, _ = Collection.objects.get_or_create(name='posts')
        row.records.insert(0, {'id': 'abc', 'title': 'Hello'})
        row.save()
    """

    name = models.CharField(
        max_length=64,
        unique=True,
        help_text="Collection name (users, posts, comments, messages)"
    )
    records = models.JSONField(
        default=list,
        blank=True,
        help_text="Ordered list of records in storage order"
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Last save timestamp"
    )

    class Meta:
        ordering = ['name']

    def __str__(self):
        count = len(self.records) if isinstance(self.records, list) else 0
        return f"{self.name} ({count} records)"
