"""
Outbound e-mail for the verification and password reset flows.

Three transports share one message builder:
- SmtpMailer: real delivery through an SMTP relay (smtplib)
- LogMailer: development fallback when no SMTP host is configured; the link is logged
- MemoryMailer: keeps every message in ``outbox`` (tests)

Delivery failures are logged and reported as ``False``; they never abort
the request that triggered the mail.
"""
from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import List

logger = logging.getLogger(__name__)

VERIFY_EMAIL = "verify_email"
RESET_PASSWORD = "reset_password"


@dataclass(frozen=True)
class SentMail:
    kind: str
    to: str
    token: str
    message: EmailMessage


class Mailer:
    def __init__(self, sender: str, frontend_url: str):
        self.sender = sender
        self.frontend_url = frontend_url.rstrip("/")

    def _message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        msg.set_content(body)
        return msg

    def deliver(self, kind: str, to: str, token: str, message: EmailMessage) -> None:
        raise NotImplementedError

    def _send(self, kind: str, to: str, token: str, message: EmailMessage) -> bool:
        try:
            self.deliver(kind, to, token, message)
        except (smtplib.SMTPException, OSError):
            logger.exception("Could not send %s e-mail", kind)
            return False
        return True

    def send_verification_email(self, to: str, username: str, token: str) -> bool:
        link = f"{self.frontend_url}/verify-email?token={token}"
        body = (
            f"Welcome to Chess Trainer, {username}!\n\n"
            f"Confirm your e-mail address by opening this link:\n{link}\n\n"
            "If you did not create an account, ignore this e-mail.\n"
        )
        return self._send(VERIFY_EMAIL, to, token, self._message(to, "Verify your Chess Trainer account", body))

    def send_password_reset_email(self, to: str, username: str, token: str) -> bool:
        link = f"{self.frontend_url}/reset-password?token={token}"
        body = (
            f"Hi {username},\n\n"
            f"Someone asked to reset the password of your Chess Trainer account. Open this link to choose a new one:\n"
            f"{link}\n\n"
            "If you did not ask for a reset, your password stays unchanged.\n"
        )
        return self._send(RESET_PASSWORD, to, token, self._message(to, "Reset your Chess Trainer password", body))


class SmtpMailer(Mailer):
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        frontend_url: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        super().__init__(sender, frontend_url)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def deliver(self, kind: str, to: str, token: str, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(message)
        logger.info("Sent %s e-mail", kind)


class LogMailer(Mailer):
    def deliver(self, kind: str, to: str, token: str, message: EmailMessage) -> None:
        logger.info("[dev mail] %s to %s:\n%s", kind, to, message.get_content())


class MemoryMailer(Mailer):
    def __init__(self, sender: str, frontend_url: str):
        super().__init__(sender, frontend_url)
        self.outbox: List[SentMail] = []

    def deliver(self, kind: str, to: str, token: str, message: EmailMessage) -> None:
        self.outbox.append(SentMail(kind=kind, to=to, token=token, message=message))

    def last(self, kind: str, to: str | None = None) -> SentMail | None:
        for mail in reversed(self.outbox):
            if mail.kind == kind and (to is None or mail.to == to):
                return mail
        return None


def build_mailer(config) -> Mailer:
    """Pick the transport from MAIL_BACKEND (smtp | log | memory)."""
    sender = config.get("MAIL_FROM", "no-reply@chess-trainer.local")
    frontend_url = config.get("FRONTEND_URL", "http://localhost:5173")
    backend = (config.get("MAIL_BACKEND") or "smtp").lower()

    if backend == "memory":
        return MemoryMailer(sender, frontend_url)
    if backend == "smtp" and config.get("SMTP_HOST"):
        return SmtpMailer(
            host=config["SMTP_HOST"],
            port=int(config.get("SMTP_PORT", 587)),
            sender=sender,
            frontend_url=frontend_url,
            username=config.get("SMTP_USERNAME"),
            password=config.get("SMTP_PASSWORD"),
            use_tls=config.get("SMTP_USE_TLS", True),
        )
    if backend == "smtp":
        logger.warning("SMTP_HOST is not set; e-mails will only be logged")
    return LogMailer(sender, frontend_url)
