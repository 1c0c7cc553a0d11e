from enum import Enum
import os

from dotenv import load_dotenv

from tool_bridge.errors import ConfigurationError


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


_ENV_VARS: dict[Provider, str] = {
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.ANTHROPIC: "ANTHROPIC_API_KEY",
    Provider.GEMINI: "GEMINI_API_KEY",
}


def get_api_key(provider: Provider) -> str:
    load_dotenv()
    env = _ENV_VARS.get(provider)
    if not env:
        raise ConfigurationError(f"No config for {provider}")
    key = os.getenv(env)
    if not key:
        raise ConfigurationError(f"{env} missing")
    return key
