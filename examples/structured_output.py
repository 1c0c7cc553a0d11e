"""
This example demonstrates how to get a typed result from a tool-calling turn
by solving a mathematical equation step-by-step.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated, List

from pydantic import BaseModel

from tool_bridge import (
    CastError,
    ChatBuilder,
    ChatRequest,
    Prop,
    Provider,
    ProtocolError,
    Settings,
    tool,
)

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


class Step(BaseModel):
    explanation: str
    output: str


class MathResponse(BaseModel):
    steps: List[Step]
    final_answer: str


class Calculator:
    @staticmethod
    @tool("Evaluate an arithmetic expression using Python syntax")
    def evaluate(expression: Annotated[str, Prop("Expression such as (16 - 7) / 3", required=True)]) -> float:
        return float(eval(expression, {"__builtins__": {}}, {}))


async def solve_math_with_tools(equation: str):
    """Solve a mathematical equation and parse the answer into MathResponse."""

    settings = Settings.from_env(Provider.OPENAI, "gpt-4o-mini", temperature=0.1)
    client = ChatBuilder(settings).add_tool(Calculator).build()

    messages = [
        {
            "role": "system",
            "content": "You are a mathematical assistant. Solve the given equation step by step.",
        },
        {"role": "user", "content": f"Solve this equation step by step: {equation}"},
    ]

    logger.info(f"Solving '{equation}' with a structured result")

    try:
        async with client:
            response = await client.create(ChatRequest(messages=messages), MathResponse)
    except CastError as e:
        logger.error(f"Failed to parse structured response: {e.raw}")
        return None
    except ProtocolError as e:
        logger.error(f"Model stopped early ({e.finish_reason}): {e}")
        return None

    math_response = response.parsed
    print(f"\nSolution for: {equation}")
    print("Steps:")
    for i, step in enumerate(math_response.steps, 1):
        print(f"  {i}. {step.explanation}")
        print(f"     Result: {step.output}")

    print(f"\nFinal Answer: {math_response.final_answer}")
    return math_response


async def main():
    # Example 1: Linear equation
    await solve_math_with_tools("3x + 7 = 16")

    print("\n" + "=" * 50 + "\n")

    # Example 2: Quadratic equation
    await solve_math_with_tools("x^2 - 5x + 6 = 0")


if __name__ == "__main__":
    asyncio.run(main())
