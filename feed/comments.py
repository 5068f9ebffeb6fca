"""
================================================================================
CAMPUS FEED - COMMENTS
================================================================================

@file        comments.py
@description Paginated comment listing, creation and deletion

STORED RECORD
================================================================================
    {"id": "...", "postId": "...", "userEmail": "bob@mail.com",
     "content": "Nice!", "createdAt": "2026-10-18T09:30:00.123Z"}

Older records may also carry "userName" / "userAvatar" copied at write time.

READ-TIME JOIN
================================================================================
Every returned comment gets a "user" object built from the commenter's
current user record:

    name    nickname -> username -> email        (user exists)
            userName -> "User"                   (no user record)
    avatar  avatarPath or ""                     (user exists)
            userAvatar or ""                     (no user record)
    email   user email, else stored userEmail

ORDERING & PAGINATION
================================================================================
list() counts all comments of the post first (total), sorts them by
createdAt newest first, then slices [offset:offset + limit]. Storage order
is also newest first because create() prepends, but list() does not rely
on it.

DELETE AUTHORIZATION
================================================================================
Allowed for the comment's author and for the parent post's author, compared
by normalized identity key. Deletion is permanent.

================================================================================
"""

import logging

from .directory import UserDirectory
from .errors import Forbidden, InvalidInput, NotAuthenticated, NotFound
from .identity import normalize_email
from .posts import FeedEnricher
from .store import COMMENTS, new_id, now_iso, parse_timestamp


logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = 'User'
DEFAULT_LIMIT = 10


def commenter_view(comment, index):
    user = index.get(normalize_email(comment.get('userEmail')))
    if user is not None:
        return {
            'name': user.get('nickname') or user.get('username') or user.get('email') or PLACEHOLDER_NAME,
            'avatar': user.get('avatarPath') or '',
            'email': user.get('email') or comment.get('userEmail') or '',
        }
    return {
        'name': comment.get('userName') or PLACEHOLDER_NAME,
        'avatar': comment.get('userAvatar') or '',
        'email': comment.get('userEmail') or '',
    }


def with_commenter(comment, index):
    out = dict(comment)
    out['user'] = commenter_view(comment, index)
    return out


class CommentAggregator:

    def __init__(self, store=None, directory=None):
        self.directory = directory or UserDirectory(store)
        self.store = self.directory.store
        self.feed = FeedEnricher(directory=self.directory)

    def list(self, post_id, offset=0, limit=DEFAULT_LIMIT):
        post_id = str(post_id)
        matches = [c for c in self.store.load(COMMENTS) if str(c.get('postId')) == post_id]
        total = len(matches)

        matches.sort(key=lambda c: parse_timestamp(c.get('createdAt')), reverse=True)
        offset = max(offset, 0)
        page = matches[offset:offset + max(limit, 0)]

        index = self.directory.build_index()
        return {
            'items': [with_commenter(c, index) for c in page],
            'total': total,
        }

    def create(self, post_id, author, body):
        me = normalize_email(author)
        if not me:
            raise NotAuthenticated()

        post_id = str(post_id)
        if self.feed.find_post(post_id) is None:
            raise NotFound("Post does not exist")

        content = str(body or '').strip()
        if not content:
            raise InvalidInput("Content cannot be empty")

        comment = {
            'id': new_id(),
            'postId': post_id,
            'userEmail': me,
            'content': content,
            'createdAt': now_iso(),
        }
        with self.store.mutate(COMMENTS) as comments:
            comments.insert(0, comment)

        logger.info(f"Comment {comment['id']} on post {post_id} by {me}")
        return with_commenter(comment, self.directory.build_index())

    def delete(self, post_id, comment_id, requester):
        me = normalize_email(requester)
        if not me:
            raise NotAuthenticated()

        post_id = str(post_id)
        comment_id = str(comment_id)
        post = self.feed.find_post(post_id)
        if post is None:
            raise NotFound("Post does not exist")

        with self.store.mutate(COMMENTS) as comments:
            idx = next(
                (i for i, c in enumerate(comments)
                 if str(c.get('id')) == comment_id and str(c.get('postId')) == post_id),
                None,
            )
            if idx is None:
                raise NotFound("Comment does not exist")

            is_comment_owner = normalize_email(comments[idx].get('userEmail')) == me
            is_post_author = normalize_email(post.get('authorEmail')) == me
            if not (is_comment_owner or is_post_author):
                raise Forbidden("Not allowed to delete this comment")

            del comments[idx]

        logger.info(f"Comment {comment_id} on post {post_id} deleted by {me}")
