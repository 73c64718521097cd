"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- POST /auth/logout-all (bearer)
- GET  /auth/profile (bearer)
- POST /auth/request-password-reset
- POST /auth/confirm-password-reset
- POST /auth/verify-email

Access tokens travel in the Authorization header, refresh tokens in the
JSON body as ``refreshToken``. Refresh tokens are rotated on every use.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort

from chess_api.deps import get_services
from chess_api.extensions import configured_limit, limiter
from models.schemas.user import (
    AuthTokensSchema,
    EmailVerificationSchema,
    LoginSchema,
    PasswordResetConfirmSchema,
    PasswordResetRequestSchema,
    RefreshTokenSchema,
    RegisterSchema,
)
from services.token_service import RevokeResult
from utils.decorators import jwt_required

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_token_schema = RefreshTokenSchema()
password_reset_request_schema = PasswordResetRequestSchema()
password_reset_confirm_schema = PasswordResetConfirmSchema()
email_verification_schema = EmailVerificationSchema()
auth_tokens_schema = AuthTokensSchema()


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _ok(data: dict, message: str | None = None, status: int = 200):
    body = {"data": data}
    if message:
        body["message"] = message
    return jsonify(body), status


@bp.post("/register")
@limiter.limit(configured_limit("REGISTER_RATE_LIMIT"), error_message="Too many registration attempts, please try again later")
def register():
    """
    Register a new user and return a token pair.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            username: { type: string }
            password: { type: string }
            confirmPassword: { type: string }
    responses:
      201:
        description: Created
      400:
        description: Validation error
      409:
        description: Email or username taken
    """
    data = register_schema.load(_json_body())
    result = get_services().auth.register(data)
    return _ok(
        {"user": result.user, "tokens": auth_tokens_schema.dump(result.tokens)},
        "User registered successfully",
        201,
    )


@bp.post("/login")
@limiter.shared_limit(
    configured_limit("AUTH_RATE_LIMIT"), scope="auth", error_message="Too many authentication attempts, please try again later"
)
def login():
    """
    Login: return the user and a fresh token pair
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid email or password
    """
    credentials = login_schema.load(_json_body())
    result = get_services().auth.login(credentials)
    return _ok({"user": result.user, "tokens": auth_tokens_schema.dump(result.tokens)}, "Login successful")


@bp.post("/refresh")
@limiter.shared_limit(
    configured_limit("AUTH_RATE_LIMIT"), scope="auth", error_message="Too many authentication attempts, please try again later"
)
def refresh():
    """
    Exchange a refresh token for a new pair (the old refresh token is revoked)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid or expired refresh token
    """
    payload = refresh_token_schema.load(_json_body())
    tokens = get_services().auth.refresh_tokens(payload["refresh_token"])
    return _ok({"tokens": auth_tokens_schema.dump(tokens)}, "Tokens refreshed successfully")


@bp.post("/logout")
def logout():
    """
    Logout: revoke one refresh token. Succeeds even if the token is unknown.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: Logged out
    """
    payload = refresh_token_schema.load(_json_body())
    outcome = get_services().auth.logout(payload["refresh_token"])
    return _ok({"revoked": outcome is RevokeResult.REVOKED}, "Logout successful")


@bp.post("/logout-all")
@jwt_required()
def logout_all():
    """
    Revoke every refresh token of the current user
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out everywhere
      401:
        description: Unauthorized
    """
    removed = get_services().auth.logout_all_devices(g.current_user["user_id"])
    return _ok({"revokedCount": removed}, "Logged out from all devices successfully")


@bp.get("/profile")
@jwt_required()
def profile():
    """
    Current user's profile
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
      404:
        description: User no longer exists
    """
    user = get_services().auth.get_user_by_id(g.current_user["user_id"])
    if user is None:
        abort(404, description="User not found")
    return _ok({"user": user})


@bp.post("/request-password-reset")
@limiter.shared_limit(
    configured_limit("PASSWORD_RESET_RATE_LIMIT"),
    scope="password_reset",
    error_message="Too many password reset attempts, please try again later",
)
def request_password_reset():
    """
    Start a password reset. The response does not reveal whether the e-mail is registered.
    ---
    tags:
      - Auth
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
    responses:
      200:
        description: Accepted
    """
    payload = password_reset_request_schema.load(_json_body())
    get_services().auth.request_password_reset(payload["email"])
    return _ok({}, "If an account with that email exists, a password reset link has been sent")


@bp.post("/confirm-password-reset")
@limiter.shared_limit(
    configured_limit("PASSWORD_RESET_RATE_LIMIT"),
    scope="password_reset",
    error_message="Too many password reset attempts, please try again later",
)
def confirm_password_reset():
    """
    Finish a password reset; every session of the user is logged out
    ---
    tags:
      - Auth
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             token: { type: string }
             newPassword: { type: string }
    responses:
      200:
        description: Password changed
      400:
        description: Invalid token or weak password
    """
    payload = password_reset_confirm_schema.load(_json_body())
    get_services().auth.confirm_password_reset(payload["token"], payload["new_password"])
    return _ok({}, "Password reset successful")


@bp.post("/verify-email")
def verify_email():
    """
    Mark the e-mail address behind a verification token as verified
    ---
    tags:
      - Auth
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             token: { type: string }
    responses:
      200:
        description: Verified
      400:
        description: Invalid or expired token
    """
    payload = email_verification_schema.load(_json_body())
    user = get_services().auth.verify_email(payload["token"])
    return _ok({"user": user}, "Email verified successfully")
