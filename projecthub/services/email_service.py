"""
Email Service

Handles SMTP email sending for report and assignment notifications.
Uses aiosmtplib for async delivery and Jinja2 for HTML/text templates.
"""

import os
import re
import logging
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import make_msgid
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

logger = logging.getLogger(__name__)

_DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"


class EmailServiceConfig:
    """Configuration for email service from environment variables."""

    def __init__(self):
        self.smtp_host = os.getenv('SMTP_HOST', 'localhost')
        self.smtp_port = int(os.getenv('SMTP_PORT', '587'))
        self.smtp_username = os.getenv('SMTP_USERNAME', '')
        self.smtp_password = os.getenv('SMTP_PASSWORD', '')
        self.smtp_use_tls = os.getenv('SMTP_USE_TLS', 'true').lower() == 'true'
        self.smtp_use_ssl = os.getenv('SMTP_USE_SSL', 'false').lower() == 'true'
        self.from_email = os.getenv('FROM_EMAIL', 'noreply@projecthub.local')
        self.from_name = os.getenv('FROM_NAME', 'Project Hub')
        self.reply_to_email = os.getenv('REPLY_TO_EMAIL', '')

        self.template_dir = os.getenv('EMAIL_TEMPLATE_DIR', str(_DEFAULT_TEMPLATE_DIR))

    def is_configured(self) -> bool:
        """Check if email service is properly configured."""
        return not self.validate()

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.smtp_host:
            errors.append("SMTP_HOST is required")
        if not self.smtp_port or self.smtp_port <= 0:
            errors.append("SMTP_PORT must be a positive integer")
        if not self.from_email:
            errors.append("FROM_EMAIL is required")
        if self.smtp_use_ssl and self.smtp_use_tls:
            errors.append("Cannot use both SSL and TLS simultaneously")

        return errors


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(self, config: Optional[EmailServiceConfig] = None):
        self.config = config or EmailServiceConfig()
        self.template_env = None
        self._setup_templates()

    def _setup_templates(self):
        """Setup Jinja2 template environment."""
        template_path = Path(self.config.template_dir)
        if not template_path.exists():
            logger.warning("Email template directory not found: %s", template_path)
        self.template_env = Environment(
            loader=FileSystemLoader(str(template_path)),
            autoescape=select_autoescape(["html"]),
        )

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send an email via SMTP.

        Returns:
            Dict with 'success', 'message_id', and 'error' keys
        """
        if not self.config.is_configured():
            return {
                'success': False,
                'error': 'Email service not configured'
            }

        try:
            message = MIMEMultipart('alternative')
            message['From'] = f"{self.config.from_name} <{self.config.from_email}>"
            message['To'] = to_email
            message['Subject'] = subject
            message['Message-ID'] = make_msgid(domain=self.config.from_email.split('@')[-1])

            if reply_to or self.config.reply_to_email:
                message['Reply-To'] = reply_to or self.config.reply_to_email

            if text_content:
                message.attach(MIMEText(text_content, 'plain', 'utf-8'))
            message.attach(MIMEText(html_content, 'html', 'utf-8'))

            result = await self._send_via_smtp(message)

            logger.info("Email sent successfully to %s: %s", to_email, subject)
            return result

        except (aiosmtplib.SMTPException, OSError) as e:
            error_msg = f"Failed to send email to {to_email}: {str(e)}"
            logger.error(error_msg, exc_info=True)
            return {
                'success': False,
                'error': error_msg
            }

    async def _send_via_smtp(self, message: MIMEMultipart) -> Dict[str, Any]:
        """Send email via SMTP with proper connection handling."""
        smtp_kwargs = {
            'hostname': self.config.smtp_host,
            'port': self.config.smtp_port,
            'start_tls': self.config.smtp_use_tls,
        }

        if self.config.smtp_use_ssl:
            smtp_kwargs['start_tls'] = False
            smtp_kwargs['use_tls'] = True
            smtp_kwargs['port'] = self.config.smtp_port or 465

        async with aiosmtplib.SMTP(**smtp_kwargs) as smtp:
            if self.config.smtp_username and self.config.smtp_password:
                await smtp.login(self.config.smtp_username, self.config.smtp_password)

            result = await smtp.send_message(message)

            return {
                'success': True,
                'message_id': message.get('Message-ID', ''),
                'smtp_result': result
            }

    def render_template(self, template_name: str, context: Dict[str, Any]) -> Tuple[str, str]:
        """
        Render email template with context.

        Returns:
            Tuple of (html_content, text_content)
        """
        html_template = self.template_env.get_template(f"{template_name}.html")
        html_content = html_template.render(**context)

        try:
            text_template = self.template_env.get_template(f"{template_name}.txt")
            text_content = text_template.render(**context)
        except TemplateNotFound:
            # Generate basic text content from HTML if no text template
            text_content = self._html_to_text(html_content)

        return html_content, text_content

    def _html_to_text(self, html_content: str) -> str:
        """Convert HTML to basic text content."""
        text = re.sub(r'<[^>]+>', '', html_content)
        text = text.replace('&amp;', '&').replace('&lt;', '<').replace('&gt;', '>')
        text = text.replace('&quot;', '"').replace('&#39;', "'")
        text = re.sub(r'\s+', ' ', text).strip()
        return text


# Global email service instance
_email_service = None


def get_email_service() -> EmailService:
    """Get singleton email service instance."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
