"""
Direct messages.

The message log is one flat, append-only collection::

    {"id": "...", "from": "alice@x.com", "to": "bob@x.com",
     "text": "hi", "images": ["/uploads/..."], "time": "2026-...Z"}

Conversations are not stored. history() and threads() derive them from the
log on every call, which is a full scan; fine while the log stays small.
"""

import logging
from collections import namedtuple

from .errors import InvalidInput, NotAuthenticated
from .identity import normalize_email
from .store import MESSAGES, get_store, new_id, now_iso, parse_timestamp


logger = logging.getLogger(__name__)


class Thread(namedtuple('Thread', ['peer', 'last_text', 'last_time'])):
    """Latest message summary for one conversation partner."""

    __slots__ = ()

    def as_dict(self):
        return {'peer': self.peer, 'last': self.last_text, 'time': self.last_time}


class MessageThreader:

    def __init__(self, store=None):
        self.store = store or get_store()

    def history(self, me, peer):
        """Messages between ``me`` and ``peer`` in either direction, oldest first."""
        me = normalize_email(me)
        peer = normalize_email(peer)
        if not me:
            raise NotAuthenticated()
        if not peer:
            raise InvalidInput("peer is required", reason='PEER_REQUIRED')

        pair = {me, peer}
        conversation = [
            m for m in self.store.load(MESSAGES)
            if {normalize_email(m.get('from')), normalize_email(m.get('to'))} == pair
        ]
        conversation.sort(key=lambda m: parse_timestamp(m.get('time')))
        return conversation

    def send(self, me, to, text='', images=()):
        me = normalize_email(me)
        if not me:
            raise NotAuthenticated()

        to = normalize_email(to)
        text = str(text or '').strip()
        images = list(images or [])

        logger.info(f"Message from={me} to={to} textLen={len(text)} files={len(images)}")

        if not to:
            raise InvalidInput("Recipient is required", reason='toEmail missing')
        if not text and not images:
            raise InvalidInput("Message needs text or an image", reason='empty text & no images')

        message = {
            'id': new_id(),
            'from': me,
            'to': to,
            'text': text,
            'images': images,
            'time': now_iso(),
        }
        with self.store.mutate(MESSAGES) as messages:
            messages.append(message)
        return message

    def threads(self, me):
        """
        One entry per conversation partner, most recently active first.

        For each peer only the message with the strictly latest time is kept;
        on equal times the one seen first in the log stays.
        """
        me = normalize_email(me)
        if not me:
            raise NotAuthenticated()

        latest = {}
        for m in self.store.load(MESSAGES):
            sender = normalize_email(m.get('from'))
            recipient = normalize_email(m.get('to'))
            if me not in (sender, recipient):
                continue
            peer = recipient if sender == me else sender
            when = parse_timestamp(m.get('time'))
            kept = latest.get(peer)
            if kept is None or kept[0] < when:
                latest[peer] = (when, Thread(peer, m.get('text', ''), m.get('time')))

        ordered = sorted(latest.values(), key=lambda item: item[0], reverse=True)
        return [thread for _, thread in ordered]
