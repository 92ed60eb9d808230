import os
from pathlib import Path

from .schemas import ProviderRef

DEFAULT_CONFIG = "promptfooconfig.yaml"
DEFAULT_PROVIDERS = "openai:gpt-4o-mini"
DEFAULT_GRADER = "openai:gpt-4o-mini"

# provider id prefix -> env vars the engine accepts (any one is enough)
CREDENTIAL_ENV: dict[str, list[str]] = {
    "openai": ["OPENAI_API_KEY"],
    "anthropic": ["ANTHROPIC_API_KEY"],
    "azure": ["AZURE_API_KEY", "AZURE_OPENAI_API_KEY"],
    "azureopenai": ["AZURE_API_KEY", "AZURE_OPENAI_API_KEY"],
    "google": ["GOOGLE_API_KEY", "GEMINI_API_KEY"],
    "vertex": ["VERTEX_API_KEY", "GOOGLE_APPLICATION_CREDENTIALS"],
    "huggingface": ["HF_API_TOKEN", "HF_TOKEN"],
    "groq": ["GROQ_API_KEY"],
    "mistral": ["MISTRAL_API_KEY"],
}


def config_path() -> Path:
    return Path(os.getenv("PROMPTFOO_CONFIG", DEFAULT_CONFIG))


def _parse_providers(raw: str) -> list[ProviderRef]:
    return [ProviderRef(id=p.strip()) for p in raw.split(",") if p.strip()]


def default_providers() -> list[ProviderRef]:
    """Providers used by a use case that declares none."""
    return _parse_providers(os.getenv("PROMPTFOO_PROVIDERS", DEFAULT_PROVIDERS))


def default_grader() -> ProviderRef:
    raw = os.getenv("PROMPTFOO_GRADER", "").strip() or DEFAULT_GRADER
    return ProviderRef(id=raw)


def credential_vars(provider_id: str) -> list[str]:
    prefix = provider_id.split(":", 1)[0].strip().lower()
    return CREDENTIAL_ENV.get(prefix, [])


def missing_credentials(provider_id: str) -> list[str]:
    """Env var names a provider needs when none of them is set, else []."""
    names = credential_vars(provider_id)
    if not names or any(os.getenv(n, "").strip() for n in names):
        return []
    return names
