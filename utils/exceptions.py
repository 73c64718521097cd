"""
Domain errors raised by the services and mapped to HTTP responses
by chess_api.errors. Services never import Flask; they raise these instead.
"""
from __future__ import annotations


class AppError(Exception):
    status = 500
    error = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(AppError):
    status = 400
    error = "VALIDATION_ERROR"


class AuthenticationError(AppError):
    status = 401
    error = "UNAUTHORIZED"


class NotFoundError(AppError):
    status = 404
    error = "NOT_FOUND"


class ConflictError(AppError):
    status = 409
    error = "CONFLICT"
