"""
Request and response schemas for accounts and tokens.
Wire names are camelCase (confirmPassword, refreshToken, isEmailVerified ...);
attribute names stay snake_case through data_key.
"""
from marshmallow import Schema, fields, pre_load, validate, validates, validates_schema, ValidationError

from models.schemas.common import USERNAME_ALLOWED, RequestSchema, UtcDateTime, norm_email, validate_password_strength


class RegisterSchema(RequestSchema):
    email = fields.Email(required=True)
    username = fields.String(
        required=True,
        validate=[
            validate.Length(min=2, error="Username must be at least 2 characters long"),
            validate.Length(max=50, error="Username must be less than 50 characters long"),
            validate.Regexp(r"^[a-zA-Z0-9_-]+$", error=f"Username can only contain {USERNAME_ALLOWED}"),
        ],
    )
    password = fields.String(required=True, load_only=True)
    confirm_password = fields.String(required=True, load_only=True, data_key="confirmPassword")

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = norm_email(data["email"])
            if isinstance(data.get("username"), str):
                data["username"] = data["username"].strip()
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        validate_password_strength(value)

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get("password") != data.get("confirm_password"):
            raise ValidationError("Passwords do not match", field_name="confirmPassword")


class LoginSchema(RequestSchema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1, error="Password is required"))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = norm_email(data["email"])
        return data


class RefreshTokenSchema(RequestSchema):
    refresh_token = fields.String(
        required=True,
        data_key="refreshToken",
        validate=validate.Length(min=1, error="Refresh token is required"),
    )


class PasswordResetRequestSchema(RequestSchema):
    email = fields.Email(required=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = norm_email(data["email"])
        return data


class PasswordResetConfirmSchema(RequestSchema):
    token = fields.String(required=True, validate=validate.Length(min=1, error="Reset token is required"))
    new_password = fields.String(required=True, load_only=True, data_key="newPassword")

    @validates("new_password")
    def validate_new_password(self, value, **kwargs):
        validate_password_strength(value)


class EmailVerificationSchema(RequestSchema):
    token = fields.String(required=True, validate=validate.Length(min=1, error="Verification token is required"))


class UserOutSchema(Schema):
    """Public view of a user. Never carries the password hash."""
    id = fields.String(allow_none=False)
    email = fields.String()
    username = fields.String()
    is_email_verified = fields.Boolean(data_key="isEmailVerified")
    created_at = UtcDateTime(data_key="createdAt")
    updated_at = UtcDateTime(data_key="updatedAt")


class AuthTokensSchema(Schema):
    access_token = fields.String(data_key="accessToken")
    refresh_token = fields.String(data_key="refreshToken")
    expires_in = fields.Integer(data_key="expiresIn")
