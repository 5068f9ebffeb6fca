"""
User directory: lookups by identity key plus the account operations
(register, login, avatar and profile edits).

User records look like::

    {"id": 1760779800123, "nickname": "bob", "email": "bob@mail.com",
     "password": "p1", "area": "", "degree": "", "avatarPath": ""}

``password`` is kept and compared in plaintext; it never leaves this module
except through the stored record (see public_user()).
"""

import logging

from .errors import Conflict, InvalidInput, NotAuthenticated, NotFound
from .identity import normalize_email
from .store import USERS, get_store, now_millis


logger = logging.getLogger(__name__)


def public_user(user):
    """Copy of a user record without the credential."""
    if user is None:
        return None
    return {k: v for k, v in user.items() if k != 'password'}


def display_name(user):
    return user.get('nickname') or user.get('email') or ''


class UserDirectory:

    def __init__(self, store=None):
        self.store = store or get_store()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_identity(self, raw):
        key = normalize_email(raw)
        if not key:
            return None
        for user in self.store.load(USERS):
            if normalize_email(user.get('email')) == key:
                return user
        return None

    def build_index(self):
        """
        Map normalized identity key -> user, built once for bulk joins.

        The first record wins on legacy duplicates, same as find_by_identity().
        """
        index = {}
        for user in self.store.load(USERS):
            key = normalize_email(user.get('email'))
            if key and key not in index:
                index[key] = user
        return index

    def get_public(self, raw):
        if not normalize_email(raw):
            raise InvalidInput("email is required")
        user = self.find_by_identity(raw)
        if user is None:
            raise NotFound("User does not exist")
        return public_user(user)

    # ------------------------------------------------------------------
    # Account operations
    # ------------------------------------------------------------------

    def register(self, email, password, nickname='', area='', degree=''):
        key = normalize_email(email)
        if not key or not password:
            raise InvalidInput("Email and password are required")

        with self.store.mutate(USERS) as users:
            if any(normalize_email(u.get('email')) == key for u in users):
                raise Conflict("This email is already registered")
            user = {
                'id': now_millis(),
                'nickname': str(nickname or '').strip() or key.split('@')[0],
                'email': key,
                'password': password,
                'area': str(area or ''),
                'degree': str(degree or ''),
                'avatarPath': '',
            }
            users.append(user)

        logger.info(f"Registered user {key}")
        return public_user(user)

    def authenticate(self, email, password):
        key = normalize_email(email)
        password = password or ''
        if key:
            for user in self.store.load(USERS):
                if normalize_email(user.get('email')) == key and user.get('password') == password:
                    return public_user(user)
        logger.info(f"Failed login for {key or '<empty>'}")
        raise NotAuthenticated("Wrong email or password")

    def _update(self, raw, changes):
        key = normalize_email(raw)
        if not key:
            raise NotAuthenticated()
        with self.store.mutate(USERS) as users:
            for user in users:
                if normalize_email(user.get('email')) == key:
                    user.update(changes)
                    return public_user(user)
        raise NotFound("User does not exist")

    def set_avatar(self, raw, avatar_path):
        self._update(raw, {'avatarPath': avatar_path})
        return avatar_path

    def update_profile(self, raw, nickname=None, area=None, degree=None):
        """Change only the fields that are given; old posts pick it up on read."""
        changes = {}
        if nickname is not None:
            nickname = str(nickname).strip()
            if not nickname:
                raise InvalidInput("Nickname cannot be empty")
            changes['nickname'] = nickname
        if area is not None:
            changes['area'] = str(area)
        if degree is not None:
            changes['degree'] = str(degree)
        return self._update(raw, changes)
