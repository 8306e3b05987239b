"""
Autenticação no Supabase Auth e contexto de sessão do painel.

O ``SessionContext`` é criado só por :func:`authenticate` e descartado no
logout. As páginas recebem o contexto explicitamente (nada de perfil
guardado em armazenamento global).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from cidadao.db import RecordStore
from cidadao.errors import AuthenticationError, IdentityError, RecordStoreError
from cidadao.models import ROLE_SUPER_ADMIN

log = logging.getLogger(__name__)

ADMIN_TABLE = "usuarios_admin"
CURRENT_USER_RPC = "get_current_user_data"


def _error_message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc)


class IdentityProvider:
    """Fachada fina sobre ``client.auth`` do supabase-py."""

    def __init__(self, auth):
        self.auth = auth

    def _call(self, what: str, fn, *args):
        try:
            return fn(*args)
        except Exception as exc:
            log.warning("Supabase Auth (%s) falhou: %s", what, _error_message(exc))
            raise IdentityError(_error_message(exc)) from exc

    def sign_in_with_password(self, email: str, password: str):
        resp = self._call(
            "sign_in",
            self.auth.sign_in_with_password,
            {"email": email, "password": password},
        )
        if resp is None or resp.session is None or resp.user is None:
            raise IdentityError("Credenciais inválidas")
        return resp.session

    def get_session(self):
        return self._call("get_session", self.auth.get_session)

    def sign_out(self) -> None:
        self._call("sign_out", self.auth.sign_out)

    def get_user(self, token: str):
        """Usuário dono do token (JWT) ou None se o token não for válido."""
        try:
            resp = self._call("get_user", self.auth.get_user, token)
        except IdentityError:
            return None
        return getattr(resp, "user", None) if resp is not None else None

    def create_user(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None):
        resp = self._call(
            "admin.create_user",
            self.auth.admin.create_user,
            {
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": metadata or {},
            },
        )
        return resp.user

    def delete_user(self, user_id: str) -> None:
        self._call("admin.delete_user", self.auth.admin.delete_user, user_id)


@dataclass(frozen=True)
class AdminProfile:
    email: str
    nome: str
    tipo_admin: str
    prefeitura_id: Optional[str] = None
    ativo: bool = True

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AdminProfile":
        return cls(
            email=row.get("email") or "",
            nome=row.get("nome") or row.get("email") or "",
            tipo_admin=row.get("tipo_admin") or "",
            prefeitura_id=row.get("prefeitura_id"),
            ativo=bool(row.get("ativo")),
        )


@dataclass(frozen=True)
class TenantInfo:
    """Linha devolvida por ``get_current_user_data()``."""

    prefeitura_id: Optional[str]
    prefeitura_nome: Optional[str]
    cidade: Optional[str]
    nome: Optional[str]
    cargo: Optional[str]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TenantInfo":
        return cls(
            prefeitura_id=row.get("prefeitura_id"),
            prefeitura_nome=row.get("prefeitura_nome"),
            cidade=row.get("cidade"),
            nome=row.get("nome"),
            cargo=row.get("cargo"),
        )


@dataclass(frozen=True)
class SessionContext:
    access_token: str
    user_id: str
    email: str
    profile: AdminProfile
    tenant: TenantInfo

    @property
    def is_super_admin(self) -> bool:
        return self.profile.tipo_admin == ROLE_SUPER_ADMIN

    @property
    def display_name(self) -> str:
        return self.tenant.nome or self.profile.nome or self.email


def fetch_admin_profile(
    store: RecordStore, email: str, *, only_active: bool = False
) -> Optional[AdminProfile]:
    eq: Dict[str, Any] = {"email": email}
    if only_active:
        eq["ativo"] = True
    rows = store.select(ADMIN_TABLE, "email, nome, tipo_admin, prefeitura_id, ativo", eq=eq, limit=1)
    return AdminProfile.from_row(rows[0]) if rows else None


def resolve_tenant(store: RecordStore) -> Optional[TenantInfo]:
    rows = store.rpc(CURRENT_USER_RPC)
    return TenantInfo.from_row(rows[0]) if rows else None


def _reject(identity: IdentityProvider, message: str) -> AuthenticationError:
    try:
        identity.sign_out()
    except IdentityError:
        log.warning("Falha ao encerrar sessão recusada")
    log.info("Login recusado: %s", message)
    return AuthenticationError(message)


def authenticate(
    identity: IdentityProvider, store: RecordStore, email: str, password: str
) -> SessionContext:
    """
    Login completo do painel:
    1. Supabase Auth (email/senha);
    2. usuário precisa existir em ``usuarios_admin`` e estar ativo;
    3. ``get_current_user_data()`` precisa devolver os dados da prefeitura.
    Em qualquer recusa a sessão recém-aberta é encerrada.
    """
    email = (email or "").strip()
    password = (password or "").strip()
    if not email or not password:
        raise AuthenticationError("Informe email e senha")

    try:
        session = identity.sign_in_with_password(email, password)
    except IdentityError as exc:
        raise AuthenticationError(str(exc)) from exc

    user_email = getattr(session.user, "email", None) or email

    try:
        profile = fetch_admin_profile(store, user_email)
    except RecordStoreError as exc:
        raise _reject(identity, f"Erro na verificação: {exc}") from exc

    if profile is None:
        raise _reject(identity, "Usuário não autorizado para este painel administrativo")
    if not profile.ativo:
        raise _reject(identity, "Usuário inativo. Contate o administrador.")

    try:
        tenant = resolve_tenant(store)
    except RecordStoreError as exc:
        raise _reject(identity, "Usuário sem permissão de acesso") from exc
    if tenant is None:
        raise _reject(identity, "Usuário sem permissão de acesso")

    log.info("Login realizado: %s (%s)", profile.nome, profile.tipo_admin)
    return SessionContext(
        access_token=session.access_token,
        user_id=str(getattr(session.user, "id", "")),
        email=user_email,
        profile=profile,
        tenant=tenant,
    )


def logout(identity: IdentityProvider, ctx: Optional[SessionContext]) -> None:
    """Encerra a sessão no Supabase; quem chama descarta o contexto."""
    identity.sign_out()
    if ctx is not None:
        log.info("Logout: %s", ctx.email)
