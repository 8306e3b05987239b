"""
Criação de administradores (conta no Supabase Auth + linha em usuarios_admin).

As duas gravações não são transacionais: se o insert na tabela falhar, a
conta recém-criada no Auth é apagada para não sobrar usuário órfão.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from cidadao.auth import ADMIN_TABLE, IdentityProvider, fetch_admin_profile
from cidadao.config import MIN_PASSWORD_LENGTH
from cidadao.db import RecordStore
from cidadao.errors import AdminCreationError, IdentityError, RecordStoreError
from cidadao.models import ROLE_SUPER_ADMIN, ROLES

log = logging.getLogger(__name__)

CREATE_PATH = "/api/admin/create"


def normalize_admin_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    def _s(key):
        v = payload.get(key)
        return v.strip() if isinstance(v, str) else v

    role = _s("tipo_admin")
    return {
        "email": _s("email") or None,
        "nome": _s("nome") or None,
        "tipo_admin": role or None,
        "prefeitura_id": None if role == ROLE_SUPER_ADMIN else (_s("prefeitura_id") or None),
        "senha": payload.get("senha") or None,
    }


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extrai o token de ``Authorization: Bearer <token>``."""
    if not authorization:
        return None
    token = authorization.replace("Bearer ", "", 1).strip()
    return token or None


def authorize_caller(identity: IdentityProvider, store: RecordStore, token: Optional[str]) -> None:
    """Só super admin ativo passa (401 sem token/token inválido, 403 demais)."""
    if not token:
        raise AdminCreationError("Token de autorização necessário", 401)

    user = identity.get_user(token)
    if user is None or not getattr(user, "email", None):
        raise AdminCreationError("Token inválido", 401)

    try:
        caller = fetch_admin_profile(store, user.email, only_active=True)
    except RecordStoreError as exc:
        log.warning("Não foi possível verificar o perfil de %s: %s", user.email, exc)
        caller = None

    if caller is None or caller.tipo_admin != ROLE_SUPER_ADMIN:
        log.warning("Criação de admin negada para %s", user.email)
        raise AdminCreationError("Acesso negado. Apenas super admins podem criar usuários.", 403)


def _validate(data: Dict[str, Any], password: Optional[str]) -> None:
    if not data["email"] or not data["nome"] or not data["tipo_admin"]:
        raise AdminCreationError("Email, nome e tipo_admin são obrigatórios", 400)
    if data["tipo_admin"] not in ROLES:
        raise AdminCreationError(f"tipo_admin inválido: {data['tipo_admin']}", 400)
    if data["tipo_admin"] != ROLE_SUPER_ADMIN and not data["prefeitura_id"]:
        raise AdminCreationError("prefeitura_id é obrigatório para admin_prefeitura", 400)
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise AdminCreationError(
            f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres", 400
        )


def create_admin(
    identity: IdentityProvider,
    store: RecordStore,
    token: Optional[str],
    payload: Dict[str, Any],
    *,
    default_password: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Fluxo completo do ``POST /api/admin/create``.
    Levanta ``AdminCreationError`` (com status HTTP) em qualquer recusa.
    """
    authorize_caller(identity, store, token)
    return register_admin(identity, store, payload, default_password=default_password)


def register_admin(
    identity: IdentityProvider,
    store: RecordStore,
    payload: Dict[str, Any],
    *,
    default_password: Optional[str] = None,
) -> Dict[str, Any]:
    """Valida, cria a conta no Auth e a linha em usuarios_admin (caller já autorizado)."""
    data = normalize_admin_payload(payload)
    password = data.pop("senha") or default_password
    _validate(data, password)

    try:
        auth_user = identity.create_user(
            data["email"],
            password,
            {"nome": data["nome"], "tipo_admin": data["tipo_admin"]},
        )
    except IdentityError as exc:
        raise AdminCreationError(f"Erro ao criar usuário: {exc}", 400) from exc

    try:
        store.insert(ADMIN_TABLE, [{**data, "ativo": True}])
    except RecordStoreError as exc:
        # desfaz a conta criada no Auth
        try:
            identity.delete_user(auth_user.id)
        except IdentityError:
            log.error("Rollback falhou: conta %s ficou sem registro admin", data["email"])
        raise AdminCreationError(f"Erro ao criar registro admin: {exc}", 400) from exc

    log.info("Administrador criado: %s (%s)", data["email"], data["tipo_admin"])
    return {
        "success": True,
        "message": "Administrador criado com sucesso!",
        "user": {
            "id": auth_user.id,
            "email": getattr(auth_user, "email", None) or data["email"],
            "nome": data["nome"],
            "tipo_admin": data["tipo_admin"],
        },
    }


def request_admin_creation(api_url: str, token: str, payload: Dict[str, Any], timeout: float = 30) -> Dict[str, Any]:
    """Chamada do painel para a API administrativa (quem tem a service role)."""
    try:
        resp = requests.post(
            api_url.rstrip("/") + CREATE_PATH,
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
        )
    except requests.RequestException as exc:
        raise AdminCreationError(f"API administrativa indisponível: {exc}", 503) from exc

    try:
        body = resp.json()
    except ValueError:
        body = {}

    if not resp.ok:
        raise AdminCreationError(body.get("error") or "Erro ao criar administrador", resp.status_code)
    return body
