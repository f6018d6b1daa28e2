"""
Twilio SMS over the REST API.

Messages are a best-effort side channel: every failure is logged and
reported as ``(False, reason)``, never raised.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from marketplace.config import settings

logger = logging.getLogger(__name__)

TWILIO_API = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


async def send_sms(to_phone: Optional[str], body: str) -> tuple[bool, Optional[str]]:
    if not to_phone:
        return False, "No phone number provided"
    if not to_phone.startswith("+"):
        logger.warning("Phone number not in E.164 format: %s", to_phone)
        return False, "Phone number must be in E.164 format"

    sid = settings.twilio_account_sid
    token = settings.twilio_auth_token
    if not (sid and token and settings.twilio_from_number):
        logger.debug("Twilio not configured; skipping SMS to %s", to_phone)
        return False, "SMS not configured"

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                TWILIO_API.format(sid=sid),
                auth=(sid, token),
                data={"To": to_phone, "From": settings.twilio_from_number, "Body": body},
                timeout=10.0,
            )
    except httpx.HTTPError as exc:
        logger.warning("SMS to %s failed: %s", to_phone, exc)
        return False, str(exc)

    if response.status_code not in (200, 201):
        logger.warning("Twilio rejected SMS to %s (%d)", to_phone, response.status_code)
        return False, f"Twilio error {response.status_code}"

    logger.info("SMS sent to %s (sid=%s)", to_phone, response.json().get("sid"))
    return True, None
