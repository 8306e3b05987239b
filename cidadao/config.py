"""
Configuração do painel e da API administrativa.

Tudo vem do ambiente (ou de um ``.env`` carregado com python-dotenv).
Nenhuma URL ou chave do Supabase fica no código-fonte.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

#: Tamanho mínimo de senha aceito nos formulários e na API
MIN_PASSWORD_LENGTH: int = 6

#: Endereço padrão da API administrativa (uvicorn local)
DEFAULT_ADMIN_API_URL: str = "http://localhost:8000"


class ConfigError(RuntimeError):
    """Configuração obrigatória ausente ou inválida."""


@dataclass(frozen=True)
class Settings:
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: Optional[str] = None
    admin_api_url: str = DEFAULT_ADMIN_API_URL
    default_admin_password: Optional[str] = None
    log_level: str = "INFO"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(name, "")
    value = value.strip()
    return value or default


def settings_from_env() -> Settings:
    """Monta ``Settings`` a partir de ``os.environ`` (sem cache)."""
    url = _env("SUPABASE_URL")
    anon_key = _env("SUPABASE_ANON_KEY")

    missing = [n for n, v in (("SUPABASE_URL", url), ("SUPABASE_ANON_KEY", anon_key)) if not v]
    if missing:
        raise ConfigError(f"Variáveis de ambiente obrigatórias ausentes: {', '.join(missing)}")

    return Settings(
        supabase_url=url,
        supabase_anon_key=anon_key,
        supabase_service_role_key=_env("SUPABASE_SERVICE_ROLE_KEY"),
        admin_api_url=(_env("ADMIN_API_URL", DEFAULT_ADMIN_API_URL) or "").rstrip("/"),
        default_admin_password=_env("DEFAULT_ADMIN_PASSWORD"),
        log_level=(_env("LOG_LEVEL", "INFO") or "INFO").upper(),
    )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """
    Carrega a configuração uma única vez por processo.
    O ``.env`` (se existir) não sobrescreve variáveis já definidas no ambiente.
    """
    load_dotenv()
    return settings_from_env()


def require_service_role(settings: Settings) -> str:
    if not settings.supabase_service_role_key:
        raise ConfigError("SUPABASE_SERVICE_ROLE_KEY é obrigatória para a API administrativa")
    return settings.supabase_service_role_key


def setup_logging(level: str = "INFO") -> None:
    """Configura o logging da aplicação (painel e API)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
