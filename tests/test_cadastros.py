"""
Testes para cidadao.cadastros (cidades, prefeituras, administradores).
"""

import pytest

from cidadao.cadastros import (
    ADMIN_TABLE,
    CITY_TABLE,
    PREFECTURE_TABLE,
    delete_admin,
    delete_city,
    delete_prefecture,
    fetch_active_municipalities,
    fetch_active_prefectures,
    fetch_admins,
    fetch_cities,
    save_city,
    save_prefecture,
    toggle_active,
    update_admin,
)
from cidadao.errors import ValidationError


# ===========================================================================
# Ativar / desativar
# ===========================================================================


@pytest.mark.parametrize("table,flag", [
    (CITY_TABLE, "ativo"),
    (ADMIN_TABLE, "ativo"),
    (PREFECTURE_TABLE, "is_active"),
])
def test_toggle_duas_vezes_volta_ao_original(store, fake, table, flag):
    fake.tables[table] = [{"id": 7, flag: True}]

    assert toggle_active(store, table, fake.tables[table][0]) is False
    assert fake.tables[table][0][flag] is False

    assert toggle_active(store, table, fake.tables[table][0]) is True
    assert fake.tables[table][0][flag] is True


# ===========================================================================
# Cidades
# ===========================================================================


def test_save_city_insere_ativa(store, fake):
    save_city(store, {"nome": " Niterói ", "estado_id": 19, "codigo_ibge": "3303302"})

    [city] = fake.tables[CITY_TABLE]
    assert city["nome"] == "Niterói"
    assert city["ativo"] is True


def test_save_city_edicao(store, fake):
    fake.tables[CITY_TABLE] = [{"id": 1, "nome": "Nitroi", "estado_id": 19, "codigo_ibge": "1", "ativo": False}]

    save_city(store, {"nome": "Niterói", "estado_id": 19, "codigo_ibge": "3303302"}, city_id=1)

    city = fake.tables[CITY_TABLE][0]
    assert city["nome"] == "Niterói"
    assert city["ativo"] is False
    assert "updated_at" in city


def test_save_city_campos_obrigatorios(store, fake):
    with pytest.raises(ValidationError, match="codigo_ibge"):
        save_city(store, {"nome": "Niterói", "estado_id": 19, "codigo_ibge": "  "})
    assert fake.writes(CITY_TABLE) == []


def test_fetch_cities_ordenadas_e_delete(store, fake):
    fake.tables[CITY_TABLE] = [{"id": 1, "nome": "Rio"}, {"id": 2, "nome": "Maricá"}]

    assert [c["nome"] for c in fetch_cities(store)] == ["Maricá", "Rio"]

    delete_city(store, 1)
    assert [c["id"] for c in fake.tables[CITY_TABLE]] == [2]


def test_municipios_ativos_para_o_formulario(store, fake):
    fake.tables[CITY_TABLE] = [{"id": 1, "nome": "Rio", "ativo": False}, {"id": 2, "nome": "Maricá", "ativo": True}]

    assert [m["id"] for m in fetch_active_municipalities(store)] == [2]


# ===========================================================================
# Prefeituras
# ===========================================================================


def test_save_prefecture_insere_ativa(store, fake):
    save_prefecture(store, {"nome": "Prefeitura de Maricá", "municipio_id": 2, "email": " p@marica.rj.gov.br "})

    [pref] = fake.tables[PREFECTURE_TABLE]
    assert pref["is_active"] is True
    assert pref["email"] == "p@marica.rj.gov.br"
    assert pref["cnpj"] is None


def test_save_prefecture_exige_municipio(store, fake):
    with pytest.raises(ValidationError, match="municipio_id"):
        save_prefecture(store, {"nome": "Prefeitura sem cidade"})


def test_delete_prefecture_e_ativas(store, fake):
    fake.tables[PREFECTURE_TABLE] = [
        {"id": "a", "nome": "B", "is_active": True},
        {"id": "b", "nome": "A", "is_active": False},
    ]

    assert [p["id"] for p in fetch_active_prefectures(store)] == ["a"]

    delete_prefecture(store, "a")
    assert [p["id"] for p in fake.tables[PREFECTURE_TABLE]] == ["b"]


# ===========================================================================
# Administradores
# ===========================================================================


@pytest.fixture
def admins(fake):
    fake.tables[ADMIN_TABLE] = [
        {"id": 1, "email": "a@x.com", "nome": "A", "tipo_admin": "admin_prefeitura",
         "prefeitura_id": "p1", "ativo": True, "created_at": "2024-01-01"},
        {"id": 2, "email": "b@x.com", "nome": "B", "tipo_admin": "super_admin",
         "prefeitura_id": None, "ativo": True, "created_at": "2024-02-01"},
    ]
    return fake.tables[ADMIN_TABLE]


def test_fetch_admins_mais_recentes_primeiro(store, admins):
    assert [a["id"] for a in fetch_admins(store)] == [2, 1]


def test_promover_a_super_admin_remove_prefeitura(store, admins):
    update_admin(store, 1, {"nome": "A", "tipo_admin": "super_admin", "prefeitura_id": "p1"})

    assert admins[0]["tipo_admin"] == "super_admin"
    assert admins[0]["prefeitura_id"] is None


def test_admin_prefeitura_sem_prefeitura_recusado(store, fake, admins):
    with pytest.raises(ValidationError):
        update_admin(store, 2, {"nome": "B", "tipo_admin": "admin_prefeitura", "prefeitura_id": None})
    assert fake.writes(ADMIN_TABLE) == []


def test_tipo_admin_invalido(store, admins):
    with pytest.raises(ValidationError, match="inválido"):
        update_admin(store, 1, {"nome": "A", "tipo_admin": "root"})


def test_delete_admin(store, fake, admins):
    delete_admin(store, 1)

    assert [a["id"] for a in fetch_admins(store)] == [2]
    assert fake.writes(ADMIN_TABLE) == [(ADMIN_TABLE, "delete")]
