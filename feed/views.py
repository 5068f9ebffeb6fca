import json
import logging
from functools import wraps

from django.conf import settings
from django.http import JsonResponse, QueryDict
from django.http.multipartparser import MultiPartParserError
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .comments import DEFAULT_LIMIT, CommentAggregator
from .directory import UserDirectory
from .errors import InvalidInput, NotAuthenticated, NotFound
from .identity import normalize_email
from .messaging import MessageThreader
from .posts import FeedEnricher
from .store import now_millis
from .uploads import save_upload, save_uploads


# Logger
logger = logging.getLogger(__name__)


def identity_required(view):
    """Reject anonymous callers with NotAuthenticated (401)."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.caller_email:
            raise NotAuthenticated()
        return view(request, *args, **kwargs)
    return wrapper


def _payload(request):
    """Request body as a dict-like: JSON object, form data or multipart fields."""
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except ValueError:
            raise InvalidInput("Malformed JSON body")
        if not isinstance(data, dict):
            raise InvalidInput("JSON body must be an object")
        return data
    if request.method == 'POST':
        return request.POST
    # PATCH bodies are not parsed by Django
    if request.content_type == 'multipart/form-data':
        try:
            data, _files = request.parse_file_upload(request.META, request)
        except MultiPartParserError:
            raise InvalidInput("Malformed multipart body")
        return data
    return QueryDict(request.body)


def _int_param(value, default, minimum=0):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= minimum else default


def _cookie_name():
    return getattr(settings, 'FEED_IDENTITY_COOKIE', 'email')


@require_GET
def ping(request):
    return JsonResponse({"ok": True, "ts": now_millis()})


# ============================================================================
# USERS
# ============================================================================

@csrf_exempt
@require_POST
def register(request):
    data = _payload(request)
    user = UserDirectory().register(
        email=data.get('email'),
        password=data.get('password'),
        nickname=data.get('nickname', ''),
        area=data.get('area', ''),
        degree=data.get('degree', ''),
    )
    return JsonResponse({"msg": "Registered", "user": user})


@csrf_exempt
@require_POST
def login_view(request):
    data = _payload(request)
    user = UserDirectory().authenticate(data.get('email'), data.get('password'))

    response = JsonResponse({"msg": "Logged in", "user": user})
    # Normalized key in the cookie, never the raw submitted form
    response.set_cookie(_cookie_name(), user['email'], httponly=False, samesite='Lax')
    return response


@csrf_exempt
@require_POST
def logout_view(request):
    response = JsonResponse({"msg": "Logged out"})
    response.delete_cookie(_cookie_name(), samesite='Lax')
    return response


@require_GET
@identity_required
def me(request):
    return JsonResponse(UserDirectory().get_public(request.caller_email))


@csrf_exempt
@require_http_methods(["POST", "PATCH"])
@identity_required
def update_profile(request):
    data = _payload(request)
    user = UserDirectory().update_profile(
        request.caller_email,
        nickname=data.get('nickname'),
        area=data.get('area'),
        degree=data.get('degree'),
    )
    return JsonResponse(user)


@require_GET
def user_by_email(request):
    return JsonResponse(UserDirectory().get_public(request.GET.get('email')))


@csrf_exempt
@require_POST
@identity_required
def upload_avatar(request):
    avatar = request.FILES.get('avatar')
    if avatar is None:
        raise InvalidInput("No file selected")

    directory = UserDirectory()
    if directory.find_by_identity(request.caller_email) is None:
        raise NotFound("User does not exist")

    avatar_path = directory.set_avatar(request.caller_email, save_upload(avatar))
    logger.info(f"Avatar updated for {request.caller_email}: {avatar_path}")
    return JsonResponse({"msg": "Avatar updated", "avatarPath": avatar_path})


# ============================================================================
# POSTS
# ============================================================================

@csrf_exempt
@require_http_methods(["GET", "POST"])
def posts(request):
    feed = FeedEnricher()

    if request.method == "POST":
        data = _payload(request)
        images = save_uploads(request.FILES.getlist('images'))
        post = feed.create_post(
            request.caller_email,
            title=data.get('title', ''),
            desc=data.get('desc', ''),
            category=data.get('category', ''),
            images=images,
            fallback={
                'authorEmail': data.get('authorEmail'),
                'authorName': data.get('authorName'),
                'authorAvatar': data.get('authorAvatar'),
            },
        )
        return JsonResponse(post)

    return JsonResponse(feed.list_posts(request.GET.get('category', '')), safe=False)


@require_GET
def post_detail(request, post_id):
    return JsonResponse(FeedEnricher().get_post(post_id))


# ============================================================================
# COMMENTS
# ============================================================================

@csrf_exempt
@require_http_methods(["GET", "POST"])
def post_comments(request, post_id):
    comments = CommentAggregator()

    if request.method == "POST":
        if not request.caller_email:
            raise NotAuthenticated()
        data = _payload(request)
        comment = comments.create(post_id, request.caller_email, data.get('content', ''))
        return JsonResponse(comment)

    offset = _int_param(request.GET.get('offset'), 0)
    limit = _int_param(request.GET.get('limit'), DEFAULT_LIMIT, minimum=1)
    return JsonResponse(comments.list(post_id, offset, limit))


@csrf_exempt
@require_http_methods(["DELETE"])
@identity_required
def delete_comment(request, post_id, comment_id):
    CommentAggregator().delete(post_id, comment_id, request.caller_email)
    return JsonResponse({"msg": "Deleted"})


# ============================================================================
# MESSAGES
# ============================================================================

@csrf_exempt
@require_http_methods(["GET", "POST"])
@identity_required
def messages_view(request):
    threader = MessageThreader()

    if request.method == "POST":
        data = _payload(request)
        to = data.get('toEmail')
        # Nothing is uploaded for a request that is rejected for its recipient
        images = save_uploads(request.FILES.getlist('images')) if normalize_email(to) else []
        message = threader.send(request.caller_email, to, data.get('text') or '', images)
        return JsonResponse(message)

    return JsonResponse(threader.history(request.caller_email, request.GET.get('peer')), safe=False)


@require_GET
@identity_required
def message_threads(request):
    threads = MessageThreader().threads(request.caller_email)
    return JsonResponse([t.as_dict() for t in threads], safe=False)
