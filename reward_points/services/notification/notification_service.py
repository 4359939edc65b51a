import asyncio
import logging
import os
import smtplib
from dataclasses import dataclass, field
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Protocol
from jinja2 import Environment, FileSystemLoader, select_autoescape

from reward_points.core.config import settings
from reward_points.models.shared.enums import NotificationPurpose

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "templates", "email")

# Front-end routes used as deep links in emails
MANAGER_APPROVAL_LINK = "/manager-approval"
DIRECTOR_APPROVAL_LINK = "/director-approval"
MY_REWARD_POINTS_LINK = "/my-reward-points"
DECLINED_ENTRIES_LINK = "/declined-entries"


@dataclass
class Notification:
    to: List[str]
    subject: str
    purpose: NotificationPurpose
    role: str
    link: str
    fullname: Optional[str] = None
    status: Optional[str] = None
    reward_points: Optional[str] = None
    cc: List[str] = field(default_factory=list)


class Notifier(Protocol):
    async def notify(self, notification: Notification) -> bool: ...


class NotificationService:
    """Email notifications for approval workflow transitions"""

    def __init__(self):
        self.smtp_server = settings.MAIL_SERVER
        self.smtp_port = settings.MAIL_PORT
        self.username = settings.MAIL_USERNAME
        self.password = settings.MAIL_PASSWORD
        self.from_email = settings.MAIL_FROM
        self.from_name = settings.MAIL_FROM_NAME

        self.template_env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(["html"])
        )

    @staticmethod
    def build_message(notification: Notification) -> str:
        if notification.purpose == NotificationPurpose.SUBMISSION:
            return (
                f"{notification.fullname} has submitted a new reward points entry for your review "
                f"and approval. Please log into the system to view the details."
            )
        if notification.purpose == NotificationPurpose.APPROVAL:
            return (
                f"We are letting you know that your recent reward points entry has been "
                f"{notification.status}. Please log into the system to view the details."
            )
        return (
            f"{notification.fullname} has resubmitted a reward entry for {notification.reward_points}. "
            f"Please log into the system to review the entry and either approve or reject it."
        )

    def render(self, notification: Notification) -> str:
        template = self.template_env.get_template("reward_notification.html")
        return template.render(
            subject=notification.subject,
            role=notification.role,
            message=self.build_message(notification),
            link=f"{settings.CLIENT_URL.rstrip('/')}{notification.link}",
            app_name="Reward Points"
        )

    async def notify(self, notification: Notification) -> bool:
        """Send a workflow email; failures are logged and reported as False"""
        recipients = [address for address in notification.to if address]
        if not recipients:
            logger.warning(f"Notification '{notification.subject}' has no recipients; skipped")
            return False
        if not settings.MAIL_ENABLED:
            logger.info(f"Mail disabled; '{notification.subject}' to {', '.join(recipients)} not sent")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = notification.subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = ", ".join(recipients)
            cc = [address for address in notification.cc if address]
            if cc:
                msg['Cc'] = ", ".join(cc)

            msg.attach(MIMEText(self.build_message(notification), 'plain'))
            msg.attach(MIMEText(self.render(notification), 'html'))

            await asyncio.to_thread(self._deliver, msg)
            logger.info(f"Email '{notification.subject}' sent to {', '.join(recipients)}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email '{notification.subject}' to {', '.join(recipients)}: {str(e)}")
            return False

    def _deliver(self, msg: MIMEMultipart):
        smtp_class = smtplib.SMTP_SSL if settings.MAIL_SSL else smtplib.SMTP
        with smtp_class(self.smtp_server, self.smtp_port) as server:
            if settings.MAIL_TLS and not settings.MAIL_SSL:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)


def get_notifier() -> Notifier:
    return NotificationService()
