from dotenv import load_dotenv
load_dotenv()

import sys

from cidadao.config import ConfigError, settings_from_env
from cidadao.db import RecordStore, create_public_client
from cidadao.errors import RecordStoreError

try:
    settings = settings_from_env()
except ConfigError as e:
    print("ERRO:", e)
    sys.exit(1)

print("SUPABASE_URL:", settings.supabase_url)
print("ANON_KEY prefix:", settings.supabase_anon_key[:20])
print("SERVICE_ROLE definida:", bool(settings.supabase_service_role_key))
print("ADMIN_API_URL:", settings.admin_api_url)

# consulta simples só para validar URL/chave
try:
    rows = RecordStore(create_public_client(settings)).select("categorias", "id", limit=1)
    print("Conexão OK (categorias visíveis:", len(rows), ")")
except RecordStoreError as e:
    print("Falha ao consultar o Supabase:", e)
    sys.exit(1)
