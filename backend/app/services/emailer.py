import logging
import smtplib
from email.message import EmailMessage

from .. import config

logger = logging.getLogger(__name__)


def send_email(*, to_email: str, subject: str, body: str) -> None:
    """
    Sends a plain-text email using SMTP (Gmail App Password recommended).

    Env vars:
      SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, SMTP_FROM, SMTP_TLS
    """
    host = config.SMTP_HOST
    port = config.SMTP_PORT
    user = config.SMTP_USER
    password = config.SMTP_PASS
    mail_from = config.SMTP_FROM
    use_tls = config.SMTP_TLS

    if not host or not user or not password or not mail_from:
        raise RuntimeError("SMTP is not configured (missing SMTP_HOST/SMTP_USER/SMTP_PASS/SMTP_FROM).")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = mail_from
    msg["To"] = to_email
    msg.set_content(body)

    logger.debug("Connecting to %s:%s (TLS=%s)", host, port, use_tls)
    with smtplib.SMTP(host, port, timeout=config.SMTP_TIMEOUT_S) as smtp:
        smtp.ehlo()
        if use_tls:
            smtp.starttls()
            smtp.ehlo()
        smtp.login(user, password)
        smtp.send_message(msg)
    logger.info("Email %r sent to %s", subject, to_email)
