"""
Upload storage for avatars, post images and message images.

Files go through Django's default storage: the local MEDIA_ROOT
("uploads/") in development, Cloudinary when CLOUDINARY_CLOUD_NAME is set.
Records keep the storage URL (``/uploads/<name>`` locally).
"""

import os

from django.conf import settings
from django.core.files.storage import default_storage
from django.utils.crypto import get_random_string

from .errors import InvalidInput
from .store import now_millis


def upload_name(original_name):
    ext = (os.path.splitext(original_name or '')[1] or '.jpg').lower()
    suffix = get_random_string(12, allowed_chars='0123456789abcdef')
    return f"{now_millis()}-{suffix}{ext}"


def save_upload(uploaded_file):
    name = default_storage.save(upload_name(uploaded_file.name), uploaded_file)
    return default_storage.url(name)


def save_uploads(files):
    files = list(files or [])
    limit = getattr(settings, 'FEED_MAX_UPLOADS', 9)
    if len(files) > limit:
        raise InvalidInput(f"At most {limit} images per request")
    return [save_upload(f) for f in files]
