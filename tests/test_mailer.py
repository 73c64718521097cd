from __future__ import annotations

import smtplib

import pytest

from services import mailer as mailer_module
from services.mailer import LogMailer, MemoryMailer, SmtpMailer, build_mailer


class FakeSMTP:
    instances: list = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username, password))

    def send_message(self, message):
        self.sent.append(message)


@pytest.fixture()
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mailer_module.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_smtp_mailer_sends_through_the_relay(fake_smtp):
    mailer = SmtpMailer(
        host="smtp.example.com",
        port=2525,
        sender="trainer@example.com",
        frontend_url="https://chess.example.com/",
        username="relay-user",
        password="relay-pass",
    )

    assert mailer.send_password_reset_email("bob@example.com", "bob", "tok123") is True

    server = fake_smtp.instances[0]
    assert (server.host, server.port) == ("smtp.example.com", 2525)
    assert server.calls == ["starttls", ("login", "relay-user", "relay-pass")]
    message = server.sent[0]
    assert message["To"] == "bob@example.com"
    assert message["From"] == "trainer@example.com"
    assert "https://chess.example.com/reset-password?token=tok123" in message.get_content()


def test_smtp_mailer_skips_tls_and_login_when_not_configured(fake_smtp):
    mailer = SmtpMailer(host="localhost", port=25, sender="a@b.c", frontend_url="http://x", use_tls=False)

    mailer.send_verification_email("bob@example.com", "bob", "tok")

    assert fake_smtp.instances[0].calls == []


def test_delivery_errors_are_reported_not_raised(monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("no relay")

    monkeypatch.setattr(mailer_module.smtplib, "SMTP", refuse)
    mailer = SmtpMailer(host="localhost", port=25, sender="a@b.c", frontend_url="http://x")

    assert mailer.send_verification_email("bob@example.com", "bob", "tok") is False


def test_smtp_protocol_errors_are_reported_not_raised(monkeypatch):
    class Rejecting(FakeSMTP):
        def send_message(self, message):
            raise smtplib.SMTPRecipientsRefused({"bob@example.com": (550, b"no such user")})

    monkeypatch.setattr(mailer_module.smtplib, "SMTP", Rejecting)
    mailer = SmtpMailer(host="localhost", port=25, sender="a@b.c", frontend_url="http://x")

    assert mailer.send_password_reset_email("bob@example.com", "bob", "tok") is False


@pytest.mark.parametrize(
    "config, expected",
    [
        ({"MAIL_BACKEND": "memory"}, MemoryMailer),
        ({"MAIL_BACKEND": "log", "SMTP_HOST": "smtp.example.com"}, LogMailer),
        ({"MAIL_BACKEND": "smtp", "SMTP_HOST": "smtp.example.com"}, SmtpMailer),
        ({"MAIL_BACKEND": "smtp", "SMTP_HOST": ""}, LogMailer),
        ({}, LogMailer),
    ],
)
def test_build_mailer_picks_the_transport(config, expected):
    assert type(build_mailer(config)) is expected


def test_memory_mailer_keeps_the_latest_message_per_kind():
    mailer = MemoryMailer("a@b.c", "http://x")
    mailer.send_verification_email("one@example.com", "one", "t1")
    mailer.send_verification_email("two@example.com", "two", "t2")

    assert mailer.last(mailer_module.VERIFY_EMAIL).token == "t2"
    assert mailer.last(mailer_module.VERIFY_EMAIL, to="one@example.com").token == "t1"
    assert mailer.last(mailer_module.RESET_PASSWORD) is None
