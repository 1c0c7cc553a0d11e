from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Annotated

from tool_bridge import (
    ChatBuilder,
    ChatRequest,
    Prop,
    Provider,
    Settings,
    create_transport,
    tool,
)

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


class Unit(Enum):
    celsius = 1
    fahrenheit = 2


class Clock:
    @staticmethod
    @tool("Returns the current local time")
    def GetTime() -> str:
        return datetime.now().strftime("%H:%M")


class Weather:
    @tool("Get the current weather in a given location")
    def get_weather(
        self,
        location: Annotated[str, Prop("City and state, e.g. San Francisco, CA", required=True)],
        unit: Annotated[Unit, Prop("Temperature unit")] = Unit.celsius,
    ) -> str:
        # imagine we call a real weather API here
        return "15 °C, mostly cloudy" if unit is Unit.celsius else "59 °F, mostly cloudy"


async def single_tool_turn(provider: Provider, model: str) -> None:
    """Ask a question the model can only answer by calling local tools."""
    settings = Settings.from_env(provider, model)
    transport = create_transport(provider, api_key=settings.api_key)

    client = (
        ChatBuilder(settings, transport=transport)
        .add_tool(Clock)
        .add_tool(Weather)
        .build()
    )
    logger.info("Tools: %s", client.get_schema())

    async with client:
        response = await client.create(
            ChatRequest(
                messages=[
                    {"role": "user", "content": "What time is it, and what's the weather in San Francisco?"}
                ]
            )
        )
    logger.info("%s says: %s", provider.value.capitalize(), response.content)
    logger.info("Tool results: %s", client.results)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--provider",
        choices=[p.value for p in Provider],
        default=Provider.OPENAI.value,
    )
    parser.add_argument(
        "--model",
        default="gpt-4.1-nano-2025-04-14",  # "gemini-2.0-flash-lite", "claude-3-5-haiku-20241022"
    )
    args = parser.parse_args()

    asyncio.run(single_tool_turn(Provider(args.provider), args.model))
