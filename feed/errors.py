"""
Request-level failures raised by the feed domain layer.

Each maps to one JSON error response (see FeedErrorMiddleware). None of
them is fatal to the process and none is retried.
"""


class FeedError(Exception):
    status_code = 400
    code = 'BAD_REQUEST'
    default_message = 'Bad request'

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_dict(self):
        payload = {'error': self.code, 'msg': self.message}
        if self.details:
            payload.update(self.details)
        return payload


class InvalidInput(FeedError):
    """Missing or empty required field."""
    status_code = 400
    code = 'BAD_REQUEST'
    default_message = 'Invalid input'


class NotAuthenticated(FeedError):
    """No usable caller identity, or bad credentials."""
    status_code = 401
    code = 'NOT_LOGIN'
    default_message = 'Not logged in'


class Forbidden(FeedError):
    status_code = 403
    code = 'FORBIDDEN'
    default_message = 'Not allowed'


class NotFound(FeedError):
    status_code = 404
    code = 'NOT_FOUND'
    default_message = 'Not found'


class Conflict(FeedError):
    """Duplicate identity at registration."""
    status_code = 409
    code = 'CONFLICT'
    default_message = 'Already exists'
