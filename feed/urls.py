"""
================================================================================
CAMPUS FEED - URL CONFIGURATION
================================================================================

@file        urls.py
@description JSON API routes of the feed app

URL STRUCTURE OVERVIEW
================================================================================
1. Health check
2. Users (register, login, logout, me, profile, lookup, avatar)
3. Posts (feed listing, publish, single post)
4. Comments (list, create, delete)
5. Messages (history, send, threads)

All endpoints speak JSON. The caller is identified by the "email" cookie
set at login (see feed.middleware.CallerIdentityMiddleware).

URL PARAMETER TYPES
================================================================================
- <str:post_id>:    Post id (base-36 string, compared as a string)
- <str:comment_id>: Comment id

================================================================================
"""

from django.urls import path

from . import views


urlpatterns = [

    # ========================================================================
    # SECTION 1: HEALTH CHECK
    # ========================================================================

    path("__ping", views.ping, name="ping"),

    # ========================================================================
    # SECTION 2: USERS
    # ========================================================================

    path("api/register", views.register, name="register"),
    path("api/login", views.login_view, name="login"),
    path("api/logout", views.logout_view, name="logout"),
    path("api/users/me", views.me, name="me"),
    path("api/users/me/profile", views.update_profile, name="update_profile"),
    path("api/users/me/avatar", views.upload_avatar, name="upload_avatar"),
    path("api/users/by-email", views.user_by_email, name="user_by_email"),

    # ========================================================================
    # SECTION 3: POSTS
    # ========================================================================

    path("api/posts", views.posts, name="posts"),  # GET ?category=, POST publish
    path("api/posts/<str:post_id>", views.post_detail, name="post_detail"),

    # ========================================================================
    # SECTION 4: COMMENTS
    # ========================================================================

    path(
        "api/posts/<str:post_id>/comments",
        views.post_comments,
        name="post_comments"
    ),  # GET ?offset=&limit=, POST create

    path(
        "api/posts/<str:post_id>/comments/<str:comment_id>",
        views.delete_comment,
        name="delete_comment"
    ),  # DELETE only

    # ========================================================================
    # SECTION 5: MESSAGES
    # ========================================================================

    path("api/messages", views.messages_view, name="messages"),  # GET ?peer=, POST send
    path("api/messages/threads", views.message_threads, name="message_threads"),
]
