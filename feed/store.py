"""
================================================================================
CAMPUS FEED - DOCUMENT STORE
================================================================================

@file        store.py
@description Load/save of named, ordered record collections

MODULE PURPOSE
================================================================================
All feed entities live in four independent collections:

    users      registered accounts
    posts      published posts (newest first)
    comments   post comments (newest first)
    messages   direct messages (append-only, oldest first)

A collection is an ordered list of JSON-serializable dicts. The store knows
nothing about their shape: no schema, no foreign keys, no referential
integrity.

CONTRACT
================================================================================
load(name)    -> list. Missing, unreadable or corrupt data gives [] and a
                 warning in the log. It never raises.
save(name, l) -> replaces the whole collection. Readers never observe a
                 partially written collection.
mutate(name)  -> context manager for read-modify-write. Yields the loaded
                 list and saves it when the block exits cleanly. Writers of
                 the same collection are serialized:
                   - JSONFileStore: per-collection lock inside the process
                   - DatabaseStore: row lock inside a transaction
                 Separate processes writing the same JSON file still follow
                 last-writer-wins with no error raised.

BACKENDS
================================================================================
JSONFileStore   <FEED_DATA_DIR>/<name>.json, pretty printed
DatabaseStore   feed.Collection rows in the default Django database

Pick one with settings.FEED_STORE_BACKEND ("file" or "database").

================================================================================
"""

import json
import logging
import os
import tempfile
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone as dt_timezone
from pathlib import Path

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.crypto import get_random_string
from django.utils.dateparse import parse_datetime


logger = logging.getLogger(__name__)


USERS = 'users'
POSTS = 'posts'
COMMENTS = 'comments'
MESSAGES = 'messages'

ID_CHARS = 'abcdefghijklmnopqrstuvwxyz0123456789'
EARLIEST = datetime.min.replace(tzinfo=dt_timezone.utc)


# ============================================================================
# RECORD HELPERS
# ============================================================================

def now_millis():
    return int(time.time() * 1000)


def to_base36(number):
    if number == 0:
        return '0'
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(ID_CHARS[rem])
    return ''.join(reversed(digits))


def new_id():
    """Synthetic record id: base-36 milliseconds plus a random suffix."""
    return to_base36(now_millis()) + get_random_string(10, allowed_chars=ID_CHARS)


def now_iso():
    """Current UTC time as ``2026-10-18T09:30:00.123Z``."""
    return timezone.now().isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_timestamp(value):
    """
    Parse a stored timestamp into an aware datetime for ordering.

    Accepts ISO-8601 strings (with or without ``Z``) and epoch
    milliseconds. Anything else orders as the earliest instant.
    """
    if isinstance(value, bool):
        return EARLIEST
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=dt_timezone.utc)
        except (OverflowError, OSError, ValueError):
            return EARLIEST
    if not isinstance(value, str) or not value.strip():
        return EARLIEST
    try:
        parsed = parse_datetime(value.strip())
    except ValueError:
        parsed = None
    if parsed is None:
        return EARLIEST
    if timezone.is_naive(parsed):
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


# ============================================================================
# STORE BACKENDS
# ============================================================================

class DocumentStore:
    """Base class; subclasses implement load() and save()."""

    def load(self, name):
        raise NotImplementedError

    def save(self, name, records):
        raise NotImplementedError

    @contextmanager
    def mutate(self, name):
        records = self.load(name)
        yield records
        self.save(name, records)

    @staticmethod
    def _clean(name, data):
        if not isinstance(data, list):
            logger.warning(f"Collection '{name}' is not a list, treating as empty")
            return []
        records = [r for r in data if isinstance(r, dict)]
        if len(records) != len(data):
            logger.warning(f"Collection '{name}': dropped {len(data) - len(records)} non-object entries")
        return records


class JSONFileStore(DocumentStore):
    """One pretty-printed JSON file per collection."""

    _locks = {}
    _locks_guard = threading.Lock()

    def __init__(self, directory):
        self.directory = Path(directory)

    def path_for(self, name):
        return self.directory / f"{name}.json"

    def _lock_for(self, name):
        key = str(self.path_for(name).resolve())
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    def load(self, name):
        path = self.path_for(name)
        if not path.exists():
            return []
        try:
            text = path.read_text(encoding='utf-8')
            data = json.loads(text or '[]')
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable collection file {path}: {e}")
            return []
        return self._clean(name, data)

    def save(self, name, records):
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(name)
        payload = json.dumps(list(records), indent=2, ensure_ascii=False)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{name}-", suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                fh.write(payload)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    @contextmanager
    def mutate(self, name):
        with self._lock_for(name):
            records = self.load(name)
            yield records
            self.save(name, records)


class DatabaseStore(DocumentStore):
    """Collections as feed.Collection rows."""

    def load(self, name):
        from .models import Collection

        try:
            data = Collection.objects.filter(name=name).values_list('records', flat=True).first()
        except DatabaseError as e:
            logger.warning(f"Unreadable collection row '{name}': {e}")
            return []
        if data is None:
            return []
        return self._clean(name, data)

    def save(self, name, records):
        from .models import Collection

        Collection.objects.update_or_create(name=name, defaults={'records': list(records)})

    @contextmanager
    def mutate(self, name):
        from .models import Collection

        with transaction.atomic():
            row, _ = Collection.objects.select_for_update().get_or_create(name=name)
            records = self._clean(name, row.records)
            yield records
            row.records = records
            row.save(update_fields=['records', 'updated_at'])


def get_store():
    """Store configured by settings.FEED_STORE_BACKEND."""
    backend = getattr(settings, 'FEED_STORE_BACKEND', 'file')
    if backend == 'file':
        return JSONFileStore(settings.FEED_DATA_DIR)
    if backend == 'database':
        return DatabaseStore()
    raise ImproperlyConfigured(f"Unknown FEED_STORE_BACKEND: {backend!r}")
