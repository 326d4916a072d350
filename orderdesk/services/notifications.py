# orderdesk/services/notifications.py
"""
Outbound notification channels used for invoices.

A channel returns True when the message was handed to its transport, False
when the channel is not configured, and raises when the transport fails.
"""
from typing import Any, Dict, Optional, Protocol
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
import aiosmtplib
import httpx
from jinja2 import Template

from orderdesk.core.config import settings
from orderdesk.core.logging import logger


class NotificationChannel(Protocol):
    async def send(self, recipient: str, subject: str, body: Any) -> bool:
        ...


INVOICE_HTML = Template("""
<!DOCTYPE html>
<html>
<head>
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background: #2e7d32; color: white; padding: 20px; text-align: center; }
        .content { background: #f9f9f9; padding: 30px; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{{ subject }}</h1>
        </div>
        <div class="content">
            {% for line in lines %}
            <p>{{ line }}</p>
            {% endfor %}
        </div>
    </div>
</body>
</html>
""")


class EmailNotificationChannel:
    """Sends plain text plus HTML mail over SMTP"""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
    ):
        self.smtp_host = smtp_host or settings.SMTP_HOST
        self.smtp_port = smtp_port or settings.SMTP_PORT
        self.smtp_user = smtp_user or settings.SMTP_USER
        self.smtp_password = smtp_password or settings.SMTP_PASSWORD
        self.from_email = from_email or settings.FROM_EMAIL

    def build_message(self, recipient: str, subject: str, body: str) -> MIMEMultipart:
        message = MIMEMultipart('alternative')
        message['Subject'] = subject
        message['From'] = self.from_email
        message['To'] = recipient

        message.attach(MIMEText(body, 'plain'))
        html_content = INVOICE_HTML.render(subject=subject, lines=body.splitlines())
        message.attach(MIMEText(html_content, 'html'))
        return message

    async def send(self, recipient: str, subject: str, body: str) -> bool:
        if not self.smtp_host:
            logger.warning("SMTP not configured, skipping email", extra={"channel": "email"})
            return False

        await aiosmtplib.send(
            self.build_message(recipient, subject, body),
            hostname=self.smtp_host,
            port=self.smtp_port,
            username=self.smtp_user,
            password=self.smtp_password,
            start_tls=True,
        )
        logger.info(f"Email sent to {recipient}: {subject}", extra={"channel": "email"})
        return True


class WhatsAppNotificationChannel:
    """Sends template messages through a WhatsApp Business API endpoint"""

    def __init__(
        self,
        api_url: Optional[str] = None,
        access_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url or settings.WHATSAPP_API_URL
        self.access_token = access_token or settings.WHATSAPP_ACCESS_TOKEN
        self.client = client

    def build_request(self, recipient: str, template: str, parameters: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "template",
            "template": {
                "name": template,
                "language": {"code": "en"},
                "components": [{
                    "type": "body",
                    "parameters": [
                        {"type": "text", "text": str(value)} for value in parameters.values()
                    ],
                }],
            },
        }

    async def _post(self, client: httpx.AsyncClient, data: Dict[str, Any]) -> httpx.Response:
        return await client.post(
            self.api_url,
            json=data,
            headers={"Authorization": f"Bearer {self.access_token}"},
            timeout=30.0,
        )

    async def send(self, recipient: str, subject: str, body: Dict[str, Any]) -> bool:
        """`subject` is the template name, `body` its ordered parameters"""
        if not self.api_url or not self.access_token:
            logger.warning("WhatsApp API not configured, skipping message", extra={"channel": "whatsapp"})
            return False

        data = self.build_request(recipient, subject, body)
        if self.client is not None:
            response = await self._post(self.client, data)
        else:
            async with httpx.AsyncClient() as client:
                response = await self._post(client, data)
        response.raise_for_status()

        logger.info(f"WhatsApp template {subject} sent to {recipient}", extra={"channel": "whatsapp"})
        return True
