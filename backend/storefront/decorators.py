# Overview: Request decorators for API routes.

from functools import wraps
from flask import current_app, jsonify

from .validation import CommerceError


def service_errors(failure_message: str):
    """
    Translate service-layer errors into JSON responses.

    - CommerceError subclasses answer with their own status and message
      (plus details, when present).
    - Anything else is logged with traceback and answered with a generic
      500 so store-internal detail never reaches the client.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except CommerceError as e:
                if e.status_code >= 500:
                    current_app.logger.error("%s: %s", failure_message, e)
                return jsonify(e.to_dict()), e.status_code
            except Exception:
                current_app.logger.exception(failure_message)
                return jsonify({"error": failure_message}), 500

        return decorated_function

    return decorator


def clamp_paging(limit, offset, *, default_limit: int = 100, max_limit: int = 500) -> tuple[int, int]:
    if limit is None:
        limit = default_limit
    if offset is None:
        offset = 0
    if limit < 1:
        limit = 1
    if limit > max_limit:
        limit = max_limit
    if offset < 0:
        offset = 0
    return limit, offset
