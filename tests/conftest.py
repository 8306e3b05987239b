"""
conftest.py: Supabase em memória para os testes.

``FakeSupabase`` imita só o pedaço do supabase-py que o painel usa:
- ``table(nome)`` com select/eq/gte/lte/not_.is_/order/limit/insert/update/delete;
- ``rpc(nome, params)``;
- ``auth`` com sign_in_with_password/get_session/sign_out/get_user e
  ``auth.admin.create_user/delete_user``.

Falhas são simuladas com ``fake.fail_on.add(("tabela", "operação"))`` e
``fake.auth.fail_on.add("create_user")``.
"""

from __future__ import annotations

import copy
import itertools
from types import SimpleNamespace

import pytest

from cidadao.auth import IdentityProvider
from cidadao.db import RecordStore


class FakeAPIError(Exception):
    """Mesmo formato do APIError do postgrest: mensagem em ``.message``."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class _Not:
    def __init__(self, query):
        self.query = query

    def is_(self, column, value):
        assert value == "null"
        self.query.filters.append(lambda r: r.get(column) is not None)
        return self.query


class FakeQuery:
    def __init__(self, fake, table):
        self.fake = fake
        self.table = table
        self.op = None
        self.payload = None
        self.columns = None
        self.filters = []
        self.order_by = None
        self.limit_n = None

    # --- operações ---
    def select(self, columns="*"):
        self.op, self.columns = "select", columns
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def update(self, fields):
        self.op, self.payload = "update", fields
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- filtros ---
    def eq(self, column, value):
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda r: r.get(column) is not None and r.get(column) >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda r: r.get(column) is not None and r.get(column) <= value)
        return self

    @property
    def not_(self):
        return _Not(self)

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def execute(self):
        self.fake.calls.append((self.table, self.op))
        if (self.table, self.op) in self.fake.fail_on:
            raise FakeAPIError(f"falha simulada em {self.op} {self.table}")

        rows = self.fake.tables.setdefault(self.table, [])
        matched = [r for r in rows if all(f(r) for f in self.filters)]

        if self.op == "select":
            if self.order_by:
                col, desc = self.order_by
                matched = sorted(matched, key=lambda r: (r.get(col) is None, r.get(col)), reverse=desc)
            if self.limit_n:
                matched = matched[: self.limit_n]
            data = copy.deepcopy(matched)
        elif self.op == "insert":
            data = []
            for row in self.payload:
                row = {"id": next(self.fake.ids), **row}
                rows.append(row)
                data.append(copy.deepcopy(row))
        elif self.op == "update":
            for r in matched:
                r.update(self.payload)
            data = copy.deepcopy(matched)
        elif self.op == "delete":
            self.fake.tables[self.table] = [r for r in rows if r not in matched]
            data = copy.deepcopy(matched)
        else:
            raise AssertionError(f"operação desconhecida: {self.op}")

        return SimpleNamespace(data=data)


class FakeRpc:
    def __init__(self, fake, name, params):
        self.fake = fake
        self.name = name
        self.params = params

    def execute(self):
        self.fake.calls.append((self.name, "rpc"))
        if (self.name, "rpc") in self.fake.fail_on:
            raise FakeAPIError(f"falha simulada em rpc {self.name}")
        return SimpleNamespace(data=copy.deepcopy(self.fake.rpc_results.get(self.name, [])))


class FakeAdminAuth:
    def __init__(self, auth):
        self.auth = auth

    def create_user(self, attrs):
        self.auth._maybe_fail("create_user")
        if attrs["email"] in self.auth.users:
            raise FakeAPIError("A user with this email address has already been registered")
        user = SimpleNamespace(id=f"uid-{next(self.auth.ids)}", email=attrs["email"],
                               user_metadata=attrs.get("user_metadata"))
        self.auth.users[attrs["email"]] = {"password": attrs["password"], "user": user}
        self.auth.created.append(attrs)
        return SimpleNamespace(user=user)

    def delete_user(self, user_id):
        self.auth._maybe_fail("delete_user")
        for email, entry in list(self.auth.users.items()):
            if entry["user"].id == user_id:
                del self.auth.users[email]
        self.auth.deleted.append(user_id)


class FakeAuth:
    def __init__(self):
        self.users = {}
        self.tokens = {}
        self.session = None
        self.fail_on = set()
        self.sign_outs = 0
        self.created = []
        self.deleted = []
        self.ids = itertools.count(1)
        self.admin = FakeAdminAuth(self)

    def _maybe_fail(self, what):
        if what in self.fail_on:
            raise FakeAPIError(f"falha simulada em {what}")

    def add_user(self, email, password="segredo123", token=None):
        user = SimpleNamespace(id=f"uid-{next(self.ids)}", email=email)
        self.users[email] = {"password": password, "user": user}
        if token:
            self.tokens[token] = user
        return user

    def sign_in_with_password(self, credentials):
        self._maybe_fail("sign_in")
        entry = self.users.get(credentials["email"])
        if entry is None or entry["password"] != credentials["password"]:
            raise FakeAPIError("Invalid login credentials")
        user = entry["user"]
        self.session = SimpleNamespace(access_token=f"token-{user.id}", user=user)
        return SimpleNamespace(session=self.session, user=user)

    def get_session(self):
        return self.session

    def sign_out(self):
        self._maybe_fail("sign_out")
        self.sign_outs += 1
        self.session = None

    def get_user(self, jwt):
        user = self.tokens.get(jwt)
        if user is None:
            raise FakeAPIError("invalid JWT")
        return SimpleNamespace(user=user)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.rpc_results = {}
        self.fail_on = set()
        self.calls = []
        self.ids = itertools.count(1000)
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRpc(self, name, params)

    def writes(self, table):
        return [c for c in self.calls if c[0] == table and c[1] in ("insert", "update", "delete")]


@pytest.fixture
def fake():
    return FakeSupabase()


@pytest.fixture
def store(fake):
    return RecordStore(fake)


@pytest.fixture
def identity(fake):
    return IdentityProvider(fake.auth)


def make_occurrence(id, status="recebido", created_at="2024-03-10T12:00:00+00:00", **extra):
    row = {
        "id": id,
        "protocolo": f"2024{id:04d}",
        "titulo": f"Ocorrência {id}",
        "descricao": "Buraco na via",
        "status": status,
        "endereco": "Rua das Flores, 100",
        "latitude": -22.9,
        "longitude": -43.1,
        "created_at": created_at,
        "updated_at": created_at,
        "usuarios": {"nome": "Maria Souza", "telefone": "21999990000"},
        "categorias": {"nome": "Buracos", "icone": "🕳️", "cor": "#f00"},
    }
    row.update(extra)
    return row


@pytest.fixture
def occurrence():
    return make_occurrence
