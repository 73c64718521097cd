from __future__ import annotations

import smtplib

import pytest

from services.auth_service import INVALID_CREDENTIALS, INVALID_REFRESH_TOKEN
from services.mailer import RESET_PASSWORD, VERIFY_EMAIL
from services.token_service import RevokeResult
from utils.exceptions import AuthenticationError, ConflictError, ValidationFailed
from utils.security import verify_password

STRONG_PASSWORD = "Str0ng!Pass"
NEW_PASSWORD = "N3w!Passw0rd"


def _registration(email="dave@example.com", username="dave", password=STRONG_PASSWORD, confirm=None):
    return {
        "email": email,
        "username": username,
        "password": password,
        "confirm_password": password if confirm is None else confirm,
    }


def test_register_stores_a_hash_and_returns_a_sanitized_user(services):
    result = services.auth.register(_registration())

    stored = services.users.find_by_id(result.user["id"])
    assert stored.password_hash != STRONG_PASSWORD
    assert verify_password(STRONG_PASSWORD, stored.password_hash)
    assert "password_hash" not in result.user
    assert STRONG_PASSWORD not in str(result.user)
    assert stored.password_hash not in str(result.user)
    assert result.user["isEmailVerified"] is False
    assert result.tokens.access_token and result.tokens.refresh_token


def test_register_normalises_email(services):
    result = services.auth.register(_registration(email="  Dave@Example.COM "))

    assert result.user["email"] == "dave@example.com"


def test_register_rejects_mismatched_confirmation(services):
    with pytest.raises(ValidationFailed) as exc:
        services.auth.register(_registration(confirm="Str0ng!Pasz"))

    assert exc.value.message == "Passwords do not match"


@pytest.mark.parametrize(
    "password, message",
    [
        ("Sh0rt!", "Password must be at least 8 characters long"),
        ("NOLOWER1!", "Password must contain at least one lowercase letter"),
        ("noupper1!", "Password must contain at least one uppercase letter"),
        ("NoDigits!!", "Password must contain at least one number"),
        ("NoSymbol11", "Password must contain at least one special character (@$!%*?&)"),
    ],
)
def test_register_enforces_password_policy(services, password, message):
    with pytest.raises(ValidationFailed) as exc:
        services.auth.register(_registration(password=password))

    assert exc.value.message == message


def test_register_rejects_duplicate_email_and_username(services, registered):
    with pytest.raises(ConflictError, match="email already exists"):
        services.auth.register(_registration(email="BOB@example.com", username="someone"))
    with pytest.raises(ConflictError, match="username already exists"):
        services.auth.register(_registration(email="other@example.com", username="bob"))


def test_login_returns_fresh_tokens(services, registered):
    result = services.auth.login({"email": "bob@example.com", "password": STRONG_PASSWORD})

    assert result.user["id"] == registered.user["id"]
    assert result.tokens.refresh_token != registered.tokens.refresh_token


def test_login_errors_do_not_reveal_which_part_was_wrong(services, registered):
    with pytest.raises(AuthenticationError) as unknown:
        services.auth.login({"email": "nobody@example.com", "password": STRONG_PASSWORD})
    with pytest.raises(AuthenticationError) as wrong:
        services.auth.login({"email": "bob@example.com", "password": "Wr0ng!Pass"})

    assert unknown.value.message == wrong.value.message == INVALID_CREDENTIALS


def test_refresh_rotates_the_refresh_token(services, registered):
    old = registered.tokens.refresh_token

    rotated = services.auth.refresh_tokens(old)

    assert rotated.refresh_token != old
    assert services.tokens.verify_access_token(rotated.access_token)["user_id"] == registered.user["id"]
    with pytest.raises(AuthenticationError) as exc:
        services.auth.refresh_tokens(old)
    assert exc.value.message == INVALID_REFRESH_TOKEN
    assert services.auth.refresh_tokens(rotated.refresh_token).refresh_token


def test_refresh_for_deleted_user_fails(services, registered, monkeypatch):
    token = services.tokens.generate_tokens(
        {"user_id": registered.user["id"], "email": "bob@example.com", "username": "bob"}
    ).refresh_token
    # refresh rows cascade with the user, so hide the user instead
    monkeypatch.setattr(services.users, "find_by_id", lambda user_id: None)

    with pytest.raises(AuthenticationError, match="User not found"):
        services.auth.refresh_tokens(token)


def test_logout_revokes_only_the_given_token(services, registered):
    second = services.auth.login({"email": "bob@example.com", "password": STRONG_PASSWORD})

    assert services.auth.logout(registered.tokens.refresh_token) is RevokeResult.REVOKED
    assert services.auth.logout(registered.tokens.refresh_token) is RevokeResult.NOT_FOUND
    assert services.tokens.verify_refresh_token(second.tokens.refresh_token) == registered.user["id"]


def test_logout_all_devices_revokes_every_session_of_the_user(services, registered):
    other = services.auth.register(_registration())
    services.auth.login({"email": "bob@example.com", "password": STRONG_PASSWORD})

    assert services.auth.logout_all_devices(registered.user["id"]) == 2
    assert services.tokens.verify_refresh_token(registered.tokens.refresh_token) is None
    assert services.tokens.verify_refresh_token(other.tokens.refresh_token) == other.user["id"]


def test_get_user_by_id(services, registered):
    assert services.auth.get_user_by_id(registered.user["id"])["username"] == "bob"
    assert services.auth.get_user_by_id("00000000-0000-0000-0000-000000000000") is None


def test_verify_email(services, registered):
    user = services.users.find_by_id(registered.user["id"])
    token = services.auth.issue_email_verification(user)

    verified = services.auth.verify_email(token)

    assert verified["isEmailVerified"] is True
    with pytest.raises(ValidationFailed):
        services.auth.verify_email("bogus")


def test_password_reset_changes_password_and_ends_sessions(services, registered):
    token = services.auth.request_password_reset("BOB@example.com")

    services.auth.confirm_password_reset(token, NEW_PASSWORD)

    assert services.tokens.verify_refresh_token(registered.tokens.refresh_token) is None
    assert services.auth.login({"email": "bob@example.com", "password": NEW_PASSWORD}).user["id"] == registered.user["id"]
    with pytest.raises(AuthenticationError):
        services.auth.login({"email": "bob@example.com", "password": STRONG_PASSWORD})


def test_password_reset_token_works_only_once(services, registered):
    token = services.auth.request_password_reset("bob@example.com")
    services.auth.confirm_password_reset(token, NEW_PASSWORD)

    with pytest.raises(ValidationFailed, match="Invalid or expired reset token"):
        services.auth.confirm_password_reset(token, "An0ther!Pass")


def test_password_reset_enforces_policy(services, registered):
    token = services.auth.request_password_reset("bob@example.com")

    with pytest.raises(ValidationFailed, match="uppercase"):
        services.auth.confirm_password_reset(token, "weakpass1!")


def test_password_reset_for_unknown_email_is_silent(services):
    assert services.auth.request_password_reset("ghost@example.com") is None


def test_register_rejects_username_differing_only_in_case(services, registered):
    with pytest.raises(ConflictError, match="username already exists"):
        services.auth.register(_registration(email="other@example.com", username="BOB"))

    assert services.users.find_by_username("BoB").id == registered.user["id"]


def test_register_mails_a_working_verification_link(services):
    result = services.auth.register(_registration())

    mail = services.mailer.last(VERIFY_EMAIL, to="dave@example.com")
    assert mail is not None
    assert f"/verify-email?token={mail.token}" in mail.message.get_content()
    assert mail.message["Subject"] == "Verify your Chess Trainer account"
    assert services.auth.verify_email(mail.token)["id"] == result.user["id"]


def test_password_reset_link_is_mailed_to_the_account(services, registered):
    token = services.auth.request_password_reset("bob@example.com")

    mail = services.mailer.last(RESET_PASSWORD, to="bob@example.com")
    assert mail.token == token
    assert f"/reset-password?token={token}" in mail.message.get_content()


def test_unknown_email_gets_no_reset_mail(services):
    services.auth.request_password_reset("ghost@example.com")

    assert services.mailer.last(RESET_PASSWORD) is None


def test_failed_delivery_does_not_block_registration(services, monkeypatch):
    def unreachable(*args, **kwargs):
        raise smtplib.SMTPServerDisconnected("relay went away")

    monkeypatch.setattr(services.mailer, "deliver", unreachable)

    result = services.auth.register(_registration())

    assert result.user["email"] == "dave@example.com"
    assert services.mailer.outbox == []
