# services/whatsapp.py
from __future__ import annotations

import requests
from flask import current_app
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

__all__ = ["send_whatsapp", "format_number", "WhatsAppNotConfigured", "WhatsAppDeliveryError"]


class WhatsAppNotConfigured(RuntimeError):
    pass


class WhatsAppDeliveryError(RuntimeError):
    pass


def format_number(raw: str, default_cc: str = "+91") -> str:
    """
    Normalise a stored phone number to E.164-ish form.
      9876543210      -> +919876543210  (10 digits: default country code)
      919876543210    -> +919876543210
      +14155550123    -> unchanged
    """
    num = "".join((raw or "").split())
    if num.startswith("+"):
        return num
    if len(num) == 10:
        return f"{default_cc}{num}"
    if len(num) > 10:
        return f"+{num}"
    return num


def _client() -> Client:
    cfg = current_app.config
    sid, token = cfg.get("TWILIO_ACCOUNT_SID"), cfg.get("TWILIO_AUTH_TOKEN")
    if not (cfg.get("TWILIO_ENABLED") and sid and token and cfg.get("TWILIO_WHATSAPP_FROM")):
        raise WhatsAppNotConfigured("WhatsApp service not configured")
    return Client(sid, token)


def send_whatsapp(phone_number: str, body: str) -> str:
    """Send one WhatsApp message; returns the Twilio message SID."""
    cfg = current_app.config
    client = _client()

    sender = cfg["TWILIO_WHATSAPP_FROM"]
    if not sender.startswith("whatsapp:"):
        sender = f"whatsapp:{sender}"
    to = "whatsapp:" + format_number(phone_number, cfg.get("WHATSAPP_DEFAULT_COUNTRY_CODE", "+91"))

    current_app.logger.info("[whatsapp] sending from=%s to=%s", sender, to)
    try:
        msg = client.messages.create(body=body, from_=sender, to=to)
    except TwilioException as e:
        raise WhatsAppDeliveryError(str(e)) from e
    except requests.exceptions.RequestException as e:
        # network errors raised by the Twilio HTTP client
        raise WhatsAppDeliveryError(f"WhatsApp transport error: {e}") from e

    current_app.logger.info("[whatsapp] sent sid=%s to=%s", msg.sid, to)
    return msg.sid
