# orderdesk/services/billing_dispatcher.py
from datetime import datetime
from typing import Any, Dict, Optional

from orderdesk.core.config import settings
from orderdesk.core.constants import BillingChannel
from orderdesk.core.exceptions import DispatchError
from orderdesk.core.logging import logger
from orderdesk.schemas.subscription import BillingPayload
from orderdesk.services.notifications import (
    EmailNotificationChannel,
    NotificationChannel,
    WhatsAppNotificationChannel,
)


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


def email_content(payload: BillingPayload) -> Dict[str, str]:
    lines = [
        f"Amount: {payload.amount:.2f} {payload.currency}",
        f"Coverage: {_fmt_date(payload.period_start)} - {_fmt_date(payload.period_end)}",
    ]
    if payload.invoice_url:
        lines.append(f"Invoice: {payload.invoice_url}")
    return {"subject": f"Invoice - {payload.plan_name}", "body": "\n".join(lines)}


def whatsapp_parameters(payload: BillingPayload) -> Dict[str, Any]:
    parameters = {
        "plan": payload.plan_name,
        "amount": f"{payload.amount:.2f} {payload.currency}",
        "period_start": _fmt_date(payload.period_start),
        "period_end": _fmt_date(payload.period_end),
    }
    if payload.invoice_url:
        parameters["invoice_url"] = payload.invoice_url
    return parameters


class BillingDispatcher:
    """Delivers invoice notifications over the channel named in the payload"""

    def __init__(
        self,
        email_channel: Optional[NotificationChannel] = None,
        whatsapp_channel: Optional[NotificationChannel] = None,
    ):
        self.channels: Dict[str, NotificationChannel] = {
            BillingChannel.EMAIL.value: email_channel or EmailNotificationChannel(),
            BillingChannel.WHATSAPP.value: whatsapp_channel or WhatsAppNotificationChannel(),
        }

    async def send_invoice(self, payload: BillingPayload) -> None:
        """
        Send one invoice. Any channel name other than whatsapp (compared
        case-insensitively) goes out as email. Raises DispatchError when the
        channel is not configured or its transport fails.
        """
        channel_name = payload.channel.lower()
        if channel_name != BillingChannel.WHATSAPP.value:
            channel_name = BillingChannel.EMAIL.value
        channel = self.channels[channel_name]
        log_extra = {
            "tenant_id": payload.tenant_id,
            "subscription_id": payload.subscription_id,
            "channel": channel_name,
        }

        if channel_name == BillingChannel.WHATSAPP.value:
            subject, body = settings.WHATSAPP_INVOICE_TEMPLATE, whatsapp_parameters(payload)
        else:
            content = email_content(payload)
            subject, body = content["subject"], content["body"]

        try:
            sent = await channel.send(payload.recipient, subject, body)
        except Exception as e:
            logger.error(
                f"Invoice dispatch to {payload.recipient} failed: {str(e)}",
                extra=log_extra,
            )
            raise DispatchError(channel_name, payload.recipient, str(e)) from e

        if not sent:
            logger.error(
                f"Invoice not sent to {payload.recipient}: channel not configured",
                extra=log_extra,
            )
            raise DispatchError(channel_name, payload.recipient, "channel not configured")

        logger.info(f"Invoice sent to {payload.recipient}", extra=log_extra)
