from __future__ import annotations
from functools import wraps
from flask import request, g, abort, current_app


def get_auth_service():
    return current_app.extensions["auth_service"]


def jwt_required():
    """
    Require a valid bearer access token whose subject is an active user.
    The verified identity is placed on flask.g for the view to pass on explicitly.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()

            tokens = get_auth_service().tokens
            user_id = tokens.subject_of(token)
            if user_id is None:
                abort(401, description="Invalid or expired access token")

            g.current_user_id = user_id
            return fn(*args, **kwargs)

        return wrapper

    return decorator
