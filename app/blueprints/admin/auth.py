import functools
import hmac
import logging
from flask import current_app, g, request

logger = logging.getLogger(__name__)


def admin_required(view):
    """Require an admin bearer token and an allow-listed admin email.

    Security:
    - ``Authorization: Bearer <token>`` must match ADMIN_API_TOKEN
    - ``X-Admin-Email`` must be in the ADMIN_EMAILS allowlist

    The email becomes ``g.admin_email`` and is recorded as the acting user.
    """

    @functools.wraps(view)
    def wrapped(*args, **kwargs):
        expected_token = current_app.config["ADMIN_API_TOKEN"]
        header = request.headers.get("Authorization", "")
        token = header[7:] if header.startswith("Bearer ") else ""
        if not expected_token or not hmac.compare_digest(token, expected_token):
            return {"error": "You are not authorized to perform this action."}, 401

        email = request.headers.get("X-Admin-Email", "").strip().lower()
        if email not in current_app.config["ADMIN_EMAILS"]:
            logger.info("Rejected non-admin user: %s", email or "<none>")
            return {"error": "You are not authorized to perform this action."}, 403

        g.admin_email = email
        return view(*args, **kwargs)

    return wrapped
