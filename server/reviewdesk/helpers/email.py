import html
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import resend
from reviewdesk.database.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.RESEND_API_KEY


def load_email_template(template_name: str) -> str:
    """Load HTML email template from templates directory"""
    current_dir = Path(__file__).parent
    template_path = current_dir / "templates" / template_name

    try:
        with open(template_path, "r", encoding="utf-8") as file:
            return file.read()
    except FileNotFoundError:
        raise FileNotFoundError(
            f"Template {template_name} not found at {template_path}"
        )


def render_email_template(template_name: str, **context: object) -> str:
    rendered = load_email_template(template_name)
    for key, value in context.items():
        rendered = rendered.replace("{{" + key + "}}", html.escape(str(value)))
    return rendered


def send_mail(
    to: Union[str, Sequence[str]],
    subject: str,
    html_body: str,
    attachments: Optional[List[Dict[str, Union[str, bytes]]]] = None,
) -> bool:
    """
    Send one email through Resend.

    Args:
        to: Recipient address or addresses.
        subject: Subject line.
        html_body: HTML body.
        attachments: Optional list of {"filename": str, "content": bytes}.

    Returns:
        bool: True when Resend accepted the message. Failures are logged, not raised.
    """
    recipients = [to] if isinstance(to, str) else list(to)
    try:
        payload: resend.Emails.SendParams = {
            "from": settings.MAIL_FROM,
            "to": recipients,
            "subject": subject,
            "html": html_body,
        }
        if attachments:
            payload["attachments"] = [
                {
                    "filename": attachment["filename"],
                    # Resend takes raw content as a list of byte values
                    "content": list(attachment["content"]),
                }
                for attachment in attachments
            ]

        sent = resend.Emails.send(payload)  # type: ignore
        logger.info(f"Mail sent to {recipients}: {sent['id'] if sent else ''}")
        return True
    except Exception as e:
        logger.error(f"Failed to send mail to {recipients}: {e}", exc_info=True)
        return False


def send_reviewer_reminder(
    email: str,
    reviewer_name: str,
    pending_count: int,
    event_title: str,
    deadline: str,
) -> bool:
    return send_mail(
        to=email,
        subject=f"Pending Reviews Reminder: {event_title}",
        html_body=render_email_template(
            "reviewer_reminder.html",
            reviewer_name=reviewer_name,
            pending_count=pending_count,
            event_title=event_title,
            deadline=deadline,
        ),
    )


def send_accepted_report(event_title: str, workbook: bytes) -> bool:
    return send_mail(
        to=settings.COORDINATOR_EMAIL,
        subject=f"Accepted Papers Report: {event_title}",
        html_body=render_email_template(
            "accepted_report.html", event_title=event_title
        ),
        attachments=[
            {"filename": f"{event_title}-accepted.xlsx", "content": workbook}
        ],
    )
