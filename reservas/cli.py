"""Interactive terminal chat for restaurant reservations.

Type messages as a customer would; the hosted assistant answers, checks
availability through the webhook, and the reservation is submitted once
the conversation looks complete.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from pydantic import ValidationError

from reservas.config import Settings, get_settings
from reservas.core.reservation_flow import ReservationFlow, TurnResult
from reservas.core.session import ConversationSession
from reservas.logging_config import get_logger, setup_logging
from reservas.services.assistant.client import AssistantClient
from reservas.services.exceptions import ServiceTimeoutError, TransportError, UpstreamError
from reservas.services.webhook import WebhookClient

logger: Any = get_logger(__name__)

BANNER = "💬 ASISTENTE DE RESERVAS DEL {restaurant}"
EXIT_HINT = 'Escribe "salir" o "exit" para terminar la conversación\n'

WEBHOOK_NOTICE = (
    "\n⚠️ IMPORTANTE: Antes de continuar, asegúrate de:\n"
    "1. Abrir tu flujo de trabajo en n8n\n"
    '2. Hacer clic en el botón "Test workflow" en el canvas\n'
    "3. O activar el flujo de trabajo para uso permanente\n"
)
WEBHOOK_PROMPT = '¿Has hecho clic en "Test workflow" en n8n? (Presiona Enter para continuar)'


async def wait_for_webhook() -> None:
    """Pause until the user has armed the n8n test workflow."""
    print(WEBHOOK_NOTICE)
    try:
        input(WEBHOOK_PROMPT)
    except EOFError:
        pass


def print_turn(agent_name: str, result: TurnResult) -> None:
    """Print the reply, local notices and any turn error."""
    if result.reply:
        print(f"\n🤖 {agent_name}: {result.reply}")
    if result.error:
        print(f"\n⚠️ Error: {result.error}")
    for notice in result.notices:
        if result.completed:
            print(f"\n✅ {notice}")
        else:
            print(f"\n🤖 {agent_name}: {notice}")


async def chat_loop(flow: ReservationFlow, session: ConversationSession) -> None:
    """Read user lines until exit, end of input or a submitted reservation."""
    while True:
        try:
            user_input = input("\n👤 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not user_input:
            continue

        print("🔄 El asistente está pensando...")
        result = await flow.handle_turn(session, user_input)
        print_turn(flow.agent_name, result)

        if session.is_over:
            break

    print(f"\n👋 {flow.farewell}")


async def run_chat(settings: Settings) -> int:
    """Run one conversation end to end.

    Returns:
        Process exit code
    """
    restaurant = settings.restaurant_name.upper()
    print(BANNER.format(restaurant=restaurant))
    print("-" * 43)
    print(EXIT_HINT)

    before_webhook = wait_for_webhook if settings.webhook_ready_prompt else None

    try:
        async with AssistantClient(settings) as assistant, WebhookClient(
            settings.n8n_webhook_url, settings.http_timeout_seconds
        ) as webhook:
            flow = ReservationFlow(assistant, webhook, settings, before_webhook=before_webhook)
            print(f'🔄 Inicializando el asistente "{flow.agent_name}" del {settings.restaurant_name}...\n')

            session = await flow.start()
            print(f"📝 Conversación iniciada (ID: {session.conversation_id})\n")
            print(f"🤖 {flow.agent_name}: {flow.greeting}")

            await chat_loop(flow, session)

    except ServiceTimeoutError as e:
        logger.error(f"Session aborted: {e}")
        print(f"\n❌ Error: {e}. Comprueba tu conexión e inténtalo de nuevo.")
        return 1
    except TransportError as e:
        logger.error(f"Session aborted: {e}")
        print(f"\n❌ Error: {e}. Comprueba la URL del servicio y tu conexión.")
        return 1
    except UpstreamError as e:
        logger.error(f"Session aborted: {e} (status {e.status})")
        print(f"\n❌ Error: {e}")
        if e.body:
            print(f"   Respuesta: {e.body[:300]}")
        return 1

    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="reservas-chat",
        description="Chat with the restaurant reservation assistant.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every poll, tool call and webhook payload to stderr",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        missing = ", ".join(str(err["loc"][0]).upper() for err in e.errors())
        print(f"❌ Configuración incompleta: {missing}. Revisa tu archivo .env.")
        return 2
    if args.debug:
        settings = settings.model_copy(update={"debug": True})

    setup_logging(
        level=settings.effective_log_level,
        log_dir=settings.log_dir,
        enable_file=settings.log_to_file,
    )

    try:
        return asyncio.run(run_chat(settings))
    except KeyboardInterrupt:
        print("\n👋 Conversación interrumpida.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
