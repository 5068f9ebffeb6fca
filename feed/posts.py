"""
Feed listing with read-time author overlay.

Posts carry a snapshot of the author's name and avatar from when they were
published (``authorName`` / ``authorAvatar``). That snapshot is only a
fallback: whenever ``authorEmail`` still resolves to a user, the current
user record wins. Renames and new avatars therefore show up on every old
post, and the name used at posting time is never visible once the author
exists. The snapshot itself is never rewritten in storage.
"""

import logging
from collections import namedtuple

from .directory import UserDirectory, display_name
from .errors import NotFound
from .identity import normalize_email
from .store import POSTS, new_id, now_iso


logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = 'life'


AuthorView = namedtuple('AuthorView', ['name', 'avatar', 'email', 'live'])


def author_view(post, index):
    """
    Who the author of ``post`` is right now.

    ``live`` is True when the author resolved through ``index`` (the current
    user record was used) and False when the stored snapshot was used.
    """
    key = normalize_email(post.get('authorEmail'))
    user = index.get(key) if key else None
    if user is not None:
        return AuthorView(display_name(user), user.get('avatarPath') or '', key, True)
    return AuthorView(post.get('authorName', ''), post.get('authorAvatar', ''), post.get('authorEmail', ''), False)


def enrich(post, index):
    view = author_view(post, index)
    if not view.live:
        return post
    out = dict(post)
    out['authorName'] = view.name
    out['authorAvatar'] = view.avatar
    return out


class FeedEnricher:

    def __init__(self, store=None, directory=None):
        self.directory = directory or UserDirectory(store)
        self.store = self.directory.store

    def list_posts(self, category=''):
        category = (category or '').strip()
        index = self.directory.build_index()
        posts = [enrich(p, index) for p in self.store.load(POSTS)]
        if category:
            posts = [p for p in posts if (p.get('category') or '') == category]
        return posts

    def find_post(self, post_id):
        """Raw stored post, or None."""
        post_id = str(post_id)
        for post in self.store.load(POSTS):
            if str(post.get('id')) == post_id:
                return post
        return None

    def get_post(self, post_id):
        post = self.find_post(post_id)
        if post is None:
            raise NotFound("Post does not exist")
        return enrich(post, self.directory.build_index())

    def create_post(self, author, title='', desc='', category='', images=(), fallback=None):
        """
        Publish a post as ``author`` (the caller's raw identity).

        ``fallback`` holds request-supplied authorEmail/authorName/authorAvatar
        used only for fields the caller's identity could not fill.
        """
        fallback = fallback or {}
        author_email = normalize_email(author)
        author_name = ''
        author_avatar = ''

        if author_email:
            user = self.directory.find_by_identity(author_email)
            if user is not None:
                author_name = display_name(user)
                author_avatar = user.get('avatarPath') or ''

        if not author_email and fallback.get('authorEmail'):
            author_email = normalize_email(fallback['authorEmail'])
        if not author_name and fallback.get('authorName'):
            author_name = str(fallback['authorName']).strip()
        if not author_avatar and fallback.get('authorAvatar'):
            author_avatar = str(fallback['authorAvatar']).strip()

        post = {
            'id': new_id(),
            'createdAt': now_iso(),
            'title': title or '',
            'desc': desc or '',
            'category': category or DEFAULT_CATEGORY,
            'images': list(images),
            'authorEmail': author_email,
            'authorName': author_name,
            'authorAvatar': author_avatar,
        }
        with self.store.mutate(POSTS) as posts:
            posts.insert(0, post)

        logger.info(f"Post {post['id']} published by {author_email or '<anonymous>'} in '{post['category']}'")
        return post
