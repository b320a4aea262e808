# Overview: Route decorators that turn service exceptions into JSON error responses.

from functools import wraps
from flask import jsonify, current_app

from .validation import ValidationError, NotFoundError, ConflictError
from .services.storage import StorageError, PartialCommitError


def json_errors(action: str):
    """
    Map service exceptions to status codes.

    NotFoundError -> 404, ValidationError -> 400, ConflictError -> 409,
    PartialCommitError / StorageError -> 503, anything else -> 500 (logged
    with traceback as "Failed to <action>").
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except NotFoundError as e:
                return jsonify({"error": str(e)}), 404
            except ValidationError as e:
                return jsonify({"error": str(e)}), 400
            except ConflictError as e:
                return jsonify({"error": str(e)}), 409
            except PartialCommitError as e:
                current_app.logger.error("Partial write while trying to %s: %s", action, e)
                return jsonify({
                    "error": str(e),
                    "committed": e.committed,
                    "pending": e.pending,
                }), 503
            except StorageError as e:
                return jsonify({"error": str(e)}), 503
            except Exception:
                current_app.logger.exception("Failed to %s", action)
                return jsonify({"error": "Internal server error"}), 500

        return decorated_function
    return decorator
