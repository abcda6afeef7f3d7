#!/usr/bin/env python3
"""Quick check that the n8n webhook answers availability requests."""

import asyncio
import json
import sys

from reservas.config import get_settings
from reservas.core.availability import parse_availability
from reservas.logging_config import setup_logging
from reservas.services.exceptions import ServiceError, UpstreamError
from reservas.services.webhook import WebhookClient

SAMPLE_ARGS = {
    "reserva_fecha": "2025-04-30",
    "hora": "15:00",
    "reserva_invitados": "2",
}


async def check_availability_call() -> bool:
    """Post a sample availability check and decode the answer."""
    settings = get_settings()
    print(f"Testing webhook at: {settings.n8n_webhook_url}")
    print(f"Sending arguments: {json.dumps(SAMPLE_ARGS)}")

    try:
        async with WebhookClient(
            settings.n8n_webhook_url, settings.http_timeout_seconds
        ) as webhook:
            raw = await webhook.post_availability_check(SAMPLE_ARGS)
    except UpstreamError as e:
        print(f"✗ Webhook error: {e}")
        if e.body:
            print(f"  Response body: {e.body[:500]}")
        return False
    except ServiceError as e:
        print(f"✗ Webhook error: {e}")
        return False

    print("✓ Webhook is responding")
    print(f"  Response body: {json.dumps(raw, ensure_ascii=False, indent=2)}")

    result = parse_availability(raw)
    print(f"  Available: {result.available}")
    print(f"  Mesa: {result.resource_id or '-'}  Dispo: {result.schedule_slot_id or '-'}")
    if result.error_message:
        print(f"  Parser note: {result.error_message}")
    return True


async def main() -> int:
    print("=" * 60)
    print("Restaurante Park - Webhook Check")
    print("=" * 60)

    if not await check_availability_call():
        print("\nPossible solutions:")
        print("1. Verify the webhook URL is correct")
        print("2. Make sure the n8n workflow is active/deployed")
        print("3. Check if n8n server is running and accessible")
        print("4. Check n8n logs for any errors processing the webhook")
        return 1

    print("\n" + "=" * 60)
    print("Webhook check passed.")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    setup_logging(level="WARNING", enable_file=False)
    sys.exit(asyncio.run(main()))
