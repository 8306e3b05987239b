class CidadaoError(Exception):
    """Base de todos os erros tratados pelo painel."""


class RecordStoreError(CidadaoError):
    """Falha numa chamada ao banco (tabelas ou RPC do Supabase)."""


class IdentityError(CidadaoError):
    """Falha numa chamada ao Supabase Auth."""


class AuthenticationError(CidadaoError):
    """Login recusado: credenciais inválidas, usuário sem acesso ou inativo."""


class ValidationError(CidadaoError):
    """Dados de formulário incompletos ou inválidos (nada foi gravado)."""


class AdminCreationError(CidadaoError):
    """Erro no fluxo de criação de administrador, com o status HTTP correspondente."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
