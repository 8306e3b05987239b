"""
API administrativa (FastAPI).

Único endpoint de escrita que precisa da service role do Supabase:
``POST /api/admin/create``. Roda separado do painel::

    uvicorn cidadao.api:app --port 8000
    python -m cidadao.api
"""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional, Union

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError as PydanticValidationError

from cidadao.admins import authorize_caller, bearer_token, register_admin
from cidadao.auth import IdentityProvider
from cidadao.config import ConfigError, Settings, load_settings, setup_logging
from cidadao.db import RecordStore, create_service_client
from cidadao.errors import AdminCreationError

log = logging.getLogger(__name__)


class CreateAdminRequest(BaseModel):
    email: Optional[str] = None
    nome: Optional[str] = None
    tipo_admin: Optional[str] = None
    prefeitura_id: Optional[Union[str, int]] = None
    senha: Optional[str] = None


def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def _service_client():
    return create_service_client(load_settings())


def get_identity() -> IdentityProvider:
    return IdentityProvider(_service_client().auth)


def get_record_store() -> RecordStore:
    return RecordStore(_service_client())


async def raw_body(request: Request) -> bytes:
    # corpo só é validado depois da checagem do token
    return await request.body()


def parse_create_request(raw: bytes) -> Dict[str, Any]:
    try:
        return CreateAdminRequest.model_validate_json(raw or b"").model_dump()
    except PydanticValidationError as exc:
        raise AdminCreationError("Corpo da requisição inválido", 400) from exc


app = FastAPI(title="Cidadão Ativo – API administrativa", version="1.0.0")


@app.exception_handler(ConfigError)
async def config_exception_handler(request: Request, exc: ConfigError):
    log.error("Configuração inválida: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Erro interno do servidor"})


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/api/admin/create")
def create_admin_endpoint(
    body: bytes = Depends(raw_body),
    authorization: Optional[str] = Header(default=None),
    identity: IdentityProvider = Depends(get_identity),
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings),
):
    try:
        authorize_caller(identity, store, bearer_token(authorization))
        result = register_admin(
            identity,
            store,
            parse_create_request(body),
            default_password=settings.default_admin_password,
        )
    except AdminCreationError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
    except Exception:
        log.exception("Erro interno ao criar admin")
        return JSONResponse(status_code=500, content={"error": "Erro interno do servidor"})

    return result


def run(host: str = "0.0.0.0", port: int = 8000) -> None:
    import uvicorn

    setup_logging(load_settings().log_level)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
