"""
Sessão do FreelaOS.

O cookie freelaos_session_token guarda um token assinado (django.core.signing,
com o SECRET_KEY do projeto) contendo a identidade, o tipo de sessão
(admin ou parceiro), o flag de aprovação e a expiração.
Ao ler o token, o payload vira SessaoAdmin ou SessaoParceiro; qualquer payload
inválido, expirado ou adulterado vira None.
"""
import logging
import time
from dataclasses import dataclass
from django.conf import settings
from django.core import signing
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)

SALT_SESSAO = 'freelaos.sessao'
TIPO_ADMIN = 'admin'
TIPO_PARCEIRO = 'parceiro'


@dataclass(frozen=True)
class SessaoAdmin:
    """Sessão de usuário interno (equipe)."""
    id: int
    username: str
    is_admin: bool
    aprovado: bool

    tipo = TIPO_ADMIN
    is_authenticated = True

    def as_dict(self):
        return {
            'tipo': self.tipo,
            'id': self.id,
            'username': self.username,
            'is_admin': self.is_admin,
            'aprovado': self.aprovado,
        }


@dataclass(frozen=True)
class SessaoParceiro:
    """Sessão de parceiro externo."""
    id: int
    username: str
    nome_parceiro: str
    email: str
    aprovado: bool

    tipo = TIPO_PARCEIRO
    is_authenticated = True
    is_admin = False

    def as_dict(self):
        return {
            'tipo': self.tipo,
            'id': self.id,
            'username': self.username,
            'nome_parceiro': self.nome_parceiro,
            'email': self.email,
            'aprovado': self.aprovado,
        }


def _max_age():
    return getattr(settings, 'SESSAO_MAX_AGE', 60 * 60 * 24 * 7)


def emitir_token(sessao):
    """Assina o payload da sessão com expiração de SESSAO_MAX_AGE segundos."""
    payload = {
        'sub': sessao.id,
        'username': sessao.username,
        'tipo': sessao.tipo,
        'aprovado': sessao.aprovado,
        'exp': int(time.time()) + _max_age(),
    }
    if isinstance(sessao, SessaoAdmin):
        payload['is_admin'] = sessao.is_admin
    else:
        payload['nome_parceiro'] = sessao.nome_parceiro
        payload['email'] = sessao.email
    return signing.dumps(payload, salt=SALT_SESSAO, compress=True)


def _sessao_do_payload(payload):
    tipo = payload.get('tipo')
    if not isinstance(payload.get('sub'), int) or not payload.get('username'):
        return None
    if not isinstance(payload.get('aprovado'), bool):
        return None
    if tipo == TIPO_ADMIN and isinstance(payload.get('is_admin'), bool):
        return SessaoAdmin(
            id=payload['sub'],
            username=payload['username'],
            is_admin=payload['is_admin'],
            aprovado=payload['aprovado'],
        )
    if tipo == TIPO_PARCEIRO and payload.get('nome_parceiro'):
        return SessaoParceiro(
            id=payload['sub'],
            username=payload['username'],
            nome_parceiro=payload['nome_parceiro'],
            email=payload.get('email') or '',
            aprovado=payload['aprovado'],
        )
    return None


def ler_token(token):
    """Valida assinatura, expiração e formato. Retorna a sessão ou None."""
    if not token:
        return None
    try:
        payload = signing.loads(token, salt=SALT_SESSAO, max_age=_max_age())
    except signing.BadSignature:
        logger.info("Token de sessão inválido ou expirado")
        return None
    if not isinstance(payload, dict):
        return None
    exp = payload.get('exp')
    if not isinstance(exp, int) or exp < time.time():
        return None
    return _sessao_do_payload(payload)


def resolver_sessao_do_cookie(request):
    """Resolvedor padrão: lê a sessão do cookie da requisição."""
    return ler_token(request.COOKIES.get(settings.SESSAO_COOKIE_NAME))


def obter_sessao(request):
    """
    Sessão da requisição, usando o resolvedor configurado em settings.SESSAO_RESOLVER.
    O resultado fica guardado na própria requisição.
    """
    django_request = getattr(request, '_request', request)
    if not hasattr(django_request, '_sessao_freelaos'):
        resolver = import_string(settings.SESSAO_RESOLVER)
        django_request._sessao_freelaos = resolver(django_request)
    return django_request._sessao_freelaos


def definir_cookie_sessao(response, sessao):
    response.set_cookie(
        settings.SESSAO_COOKIE_NAME,
        emitir_token(sessao),
        max_age=_max_age(),
        httponly=True,
        secure=not settings.DEBUG,
        samesite='Lax',
        path='/',
    )
    return response


def limpar_cookie_sessao(response):
    response.delete_cookie(settings.SESSAO_COOKIE_NAME, path='/', samesite='Lax')
    return response
