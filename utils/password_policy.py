import re

SPECIAL_CHARACTERS = "@$!%*?&"

# (pattern, message) checked in order; the first failure is reported
_RULES = (
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"\d"), "Password must contain at least one number"),
    (
        re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]"),
        f"Password must contain at least one special character ({SPECIAL_CHARACTERS})",
    ),
)

MIN_LENGTH = 8


def password_problem(password: str) -> str | None:
    """Return the first policy violation for ``password``, or None if it passes."""
    if password is None or len(password) < MIN_LENGTH:
        return f"Password must be at least {MIN_LENGTH} characters long"
    for pattern, message in _RULES:
        if not pattern.search(password):
            return message
    return None
