"""
Runtime settings, read from the environment (and an optional ``.env`` file).

Variables:
- ``ORDERX_DEFAULT_PROFILE``: profile used by ``orderx.create_builder()``
- ``ORDERX_STRICT_CAPABILITIES``: raise instead of ignoring unsupported calls
- ``ORDERX_PRETTY_PRINT``: indent the generated XML
- ``ORDERX_PDF_LANG``: language tag written into generated PDFs
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

_TRUE = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE


@dataclass(frozen=True)
class Settings:
    default_profile: str = "extended"
    strict_capabilities: bool = False
    pretty_print: bool = True
    pdf_lang: str = "de"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            default_profile=os.getenv("ORDERX_DEFAULT_PROFILE", cls.default_profile),
            strict_capabilities=_env_flag("ORDERX_STRICT_CAPABILITIES", cls.strict_capabilities),
            pretty_print=_env_flag("ORDERX_PRETTY_PRINT", cls.pretty_print),
            pdf_lang=os.getenv("ORDERX_PDF_LANG", cls.pdf_lang),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings loaded once per process; ``get_settings.cache_clear()`` reloads."""
    return Settings.from_env()
