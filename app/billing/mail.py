"""Mail dispatch port and quote mailing."""

from __future__ import annotations

import logging
import smtplib
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Any, Mapping, Protocol

from sqlalchemy.orm import Session

from app.billing.formatting import format_date
from app.core.config import BillingConfig, Settings
from app.core.errors import NotFound, TransportFailure, ValidationFailed
from app.db.crud.quotes import get_quote
from app.schemas.dto import MailQuote

logger = logging.getLogger(__name__)

QUOTE_TEMPLATE = """Dear {client_name},

Please find quote #{number} below.

Date: {created_at}
Valid until: {expires_at}
Total: {total}

The quote can be viewed online with the key {url_key}.

{footer}
"""


class Mailer(Protocol):
    def send(
        self,
        *,
        sender: str,
        to: str,
        to_name: str | None,
        cc: str | None,
        subject: str,
        context: Mapping[str, Any],
    ) -> None: ...


def render_quote_mail(context: Mapping[str, Any]) -> str:
    return QUOTE_TEMPLATE.format(**context).rstrip() + "\n"


class SmtpMailer:
    """Send mail over SMTP. Any transport error is raised as TransportFailure."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 587,
        user: str = "",
        password: str = "",
        timeout: int = 10,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            timeout=settings.SMTP_TIMEOUT,
        )

    def send(self, *, sender, to, to_name, cc, subject, context) -> None:
        msg = MIMEText(render_quote_mail(context), "plain")
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = formataddr((to_name or "", to))
        recipients = [to]
        if cc:
            msg["Cc"] = cc
            recipients.append(cc)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.user:
                    server.starttls()
                    server.login(self.user, self.password)
                server.sendmail(sender, recipients, msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Mail to %s failed: %s", to, e)
            raise TransportFailure(str(e)) from e
        logger.info("Mail sent to %s", to)


def mail_quote(
    db: Session, quote_id: int, cmd: MailQuote, *, mailer: Mailer, config: BillingConfig
) -> None:
    if not config.mail_configured:
        raise ValidationFailed({"mail": ["Mail is not configured."]})
    quote = get_quote(db, quote_id)
    if quote is None:
        raise NotFound("Quote", quote_id)

    context = {
        "client_name": quote.client.name,
        "number": quote.number,
        "created_at": format_date(quote.created_at, config),
        "expires_at": format_date(quote.expires_at, config),
        "total": quote.total,
        "url_key": quote.url_key,
        "footer": quote.footer or "",
    }
    # sent from the quote owner, falling back to the configured address
    sender = quote.user.email if quote.user and quote.user.email else config.mail_from
    mailer.send(
        sender=sender,
        to=cmd.to,
        to_name=quote.client.name,
        cc=cmd.cc or config.mail_cc_default,
        subject=cmd.subject,
        context=context,
    )
