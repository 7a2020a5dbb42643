import asyncio
import os
import sys

# Add project root to path so we can import chatrelay
sys.path.append(os.getcwd())

from chatrelay.config.dependencies import get_message_responder
from chatrelay.pipelines.audio import IncomingMessage


async def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/relay_message.py <text> [media_url]")
        return

    body = sys.argv[1]
    media_url = sys.argv[2] if len(sys.argv) > 2 else None
    message = IncomingMessage(sender="cli", body=body, media_url=media_url)

    print(f"Relaying {'audio' if message.has_media else 'text'} message...")
    reply = await get_message_responder().respond(message)

    print("\n--- Reply ---")
    print(reply.text)
    print(f"--- outcome={reply.outcome.value} ---")
    if len(reply.trace):
        print(reply.trace.render())


if __name__ == "__main__":
    asyncio.run(main())
