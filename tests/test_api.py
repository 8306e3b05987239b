"""
Testes para cidadao.api (POST /api/admin/create) com TestClient.

O Supabase de verdade é trocado pelo fake via ``app.dependency_overrides``.
"""

import pytest
from fastapi.testclient import TestClient

from cidadao import api
from cidadao.auth import ADMIN_TABLE, IdentityProvider
from cidadao.config import ConfigError, Settings
from cidadao.db import RecordStore


@pytest.fixture
def client(fake):
    fake.auth.add_user("root@cidadao.app", token="jwt-super")
    fake.tables[ADMIN_TABLE] = [{
        "id": 1, "email": "root@cidadao.app", "nome": "Root",
        "tipo_admin": "super_admin", "prefeitura_id": None, "ativo": True,
    }]

    api.app.dependency_overrides[api.get_identity] = lambda: IdentityProvider(fake.auth)
    api.app.dependency_overrides[api.get_record_store] = lambda: RecordStore(fake)
    api.app.dependency_overrides[api.get_settings] = lambda: Settings(
        supabase_url="http://supabase.test",
        supabase_anon_key="anon",
        supabase_service_role_key="service",
    )
    yield TestClient(api.app)
    api.app.dependency_overrides.clear()


BODY = {
    "email": "novo@pref.gov.br",
    "nome": "Novo",
    "tipo_admin": "admin_prefeitura",
    "prefeitura_id": "pref-1",
    "senha": "segredo123",
}

AUTH = {"Authorization": "Bearer jwt-super"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_criacao_ok(client, fake):
    resp = client.post("/api/admin/create", json=BODY, headers=AUTH)

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "Administrador criado com sucesso!"
    assert data["user"]["tipo_admin"] == "admin_prefeitura"
    assert len(fake.tables[ADMIN_TABLE]) == 2


def test_prefeitura_id_numerico_aceito(client, fake):
    resp = client.post("/api/admin/create", json={**BODY, "prefeitura_id": 12}, headers=AUTH)

    assert resp.status_code == 200
    assert fake.tables[ADMIN_TABLE][-1]["prefeitura_id"] == 12


def test_sem_authorization(client):
    resp = client.post("/api/admin/create", json=BODY)

    assert resp.status_code == 401
    assert resp.json() == {"error": "Token de autorização necessário"}


def test_nao_super_admin_recebe_403(client, fake):
    fake.auth.add_user("ana@pref.gov.br", token="jwt-ana")
    fake.tables[ADMIN_TABLE].append({
        "id": 2, "email": "ana@pref.gov.br", "nome": "Ana",
        "tipo_admin": "admin_prefeitura", "prefeitura_id": "pref-1", "ativo": True,
    })

    resp = client.post("/api/admin/create", json=BODY, headers={"Authorization": "Bearer jwt-ana"})

    assert resp.status_code == 403
    assert fake.writes(ADMIN_TABLE) == []


def test_admin_prefeitura_sem_prefeitura_400(client):
    resp = client.post("/api/admin/create", json={**BODY, "prefeitura_id": None}, headers=AUTH)

    assert resp.status_code == 400
    assert "prefeitura_id" in resp.json()["error"]


def test_corpo_invalido_400(client):
    resp = client.post(
        "/api/admin/create",
        content=b"{nao e json",
        headers={**AUTH, "Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "Corpo da requisição inválido"}


# ===========================================================================
# Autorização vem antes da validação do corpo
# ===========================================================================


def test_corpo_invalido_sem_token_401(client, fake):
    resp = client.post("/api/admin/create", json={"email": ["x"]})

    assert resp.status_code == 401
    assert resp.json() == {"error": "Token de autorização necessário"}


def test_corpo_invalido_de_nao_super_admin_403(client, fake):
    fake.auth.add_user("ana@pref.gov.br", token="jwt-ana")
    fake.tables[ADMIN_TABLE].append({
        "id": 2, "email": "ana@pref.gov.br", "nome": "Ana",
        "tipo_admin": "admin_prefeitura", "prefeitura_id": "pref-1", "ativo": True,
    })

    resp = client.post(
        "/api/admin/create",
        content=b"{nao e json",
        headers={"Authorization": "Bearer jwt-ana", "Content-Type": "application/json"},
    )

    assert resp.status_code == 403
    assert fake.writes(ADMIN_TABLE) == []


def test_corpo_com_tipo_errado_de_super_admin_400(client, fake):
    resp = client.post("/api/admin/create", json={"email": ["x"]}, headers=AUTH)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Corpo da requisição inválido"}
    assert fake.auth.created == []


def test_erro_inesperado_vira_500(client, fake, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("inesperado")

    monkeypatch.setattr(api, "register_admin", boom)

    resp = client.post("/api/admin/create", json=BODY, headers=AUTH)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Erro interno do servidor"}


def test_sem_service_role_vira_500(client):
    def sem_config():
        raise ConfigError("SUPABASE_SERVICE_ROLE_KEY é obrigatória")

    api.app.dependency_overrides[api.get_identity] = sem_config

    resp = client.post("/api/admin/create", json=BODY, headers=AUTH)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Erro interno do servidor"}
