# blueprints/auth/mailer.py
from __future__ import annotations
import logging
import smtplib
from email.mime.text import MIMEText
from typing import Mapping

log = logging.getLogger(__name__)


class MailError(RuntimeError):
    pass


class SmtpMailer:
    def __init__(self, host: str, port: int, sender: str, username: str | None = None,
                 password: str | None = None, use_tls: bool = True, timeout: int = 15):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def send(self, to: str, subject: str, body: str) -> None:
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password or "")
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            log.error("failed to send mail to %s: %s", to, e)
            raise MailError(str(e)) from e


class LogMailer:
    """Для dev: письмо не отправляется, только пишется в лог."""

    def __init__(self):
        self.outbox: list[dict] = []

    def send(self, to: str, subject: str, body: str) -> None:
        self.outbox.append({"to": to, "subject": subject, "body": body})
        log.info("mail to %s: %s", to, subject)


def build_mailer(config: Mapping):
    backend = (config.get("MAIL_BACKEND") or "log").lower()
    if backend == "smtp":
        return SmtpMailer(
            host=config["MAIL_SERVER"],
            port=int(config["MAIL_PORT"]),
            sender=config["MAIL_SENDER"],
            username=config.get("MAIL_USERNAME"),
            password=config.get("MAIL_PASSWORD"),
            use_tls=bool(config.get("MAIL_USE_TLS", True)),
            timeout=int(config.get("MAIL_TIMEOUT", 15)),
        )
    return LogMailer()
