"""
Controle de acesso às páginas pelo tipo de sessão (admin x parceiro).
As rotas /api/ ficam de fora: a API responde 401/403 pelas permissões do DRF.
"""
from django.shortcuts import redirect
from django.utils.deprecation import MiddlewareMixin
from .sessao import obter_sessao, limpar_cookie_sessao, SessaoAdmin, SessaoParceiro

PREFIXOS_LIVRES = ('/api/', '/static/', '/admin/', '/favicon.ico')
ROTAS_PUBLICAS = ('/login/', '/registro/', '/login-parceiro/', '/health/')
ROTAS_COMPARTILHADAS = ('/configuracoes/',)
ROTAS_ADMIN = ('/dashboard/', '/entidades/', '/relatorios/', '/calendario/', '/os/')
ROTAS_PARCEIRO = ('/parceiro/',)

HOME_ADMIN = '/dashboard/'
HOME_PARCEIRO = '/parceiro/dashboard/'
LOGIN_ADMIN = '/login/'
LOGIN_PARCEIRO = '/login-parceiro/'


def _home(sessao):
    return HOME_PARCEIRO if isinstance(sessao, SessaoParceiro) else HOME_ADMIN


def _para_login(url, status):
    return redirect(f'{url}?status={status}')


def _conta_nao_aprovada(sessao):
    url = LOGIN_PARCEIRO if isinstance(sessao, SessaoParceiro) else LOGIN_ADMIN
    return limpar_cookie_sessao(_para_login(url, 'not_approved'))


class SessaoOSMiddleware(MiddlewareMixin):
    """Redireciona para o login quando a sessão não existe, é inválida ou não está aprovada."""

    def process_request(self, request):
        path = request.path
        if path.startswith(PREFIXOS_LIVRES):
            return None

        sessao = obter_sessao(request)

        if path in ROTAS_PUBLICAS:
            if sessao and sessao.aprovado and path != '/health/':
                if isinstance(sessao, SessaoAdmin):
                    return redirect(HOME_ADMIN)
                if path != LOGIN_PARCEIRO:
                    return redirect(HOME_PARCEIRO)
            return None

        if path == '/':
            if sessao is None:
                return _para_login(LOGIN_ADMIN, 'login_required')
            return redirect(_home(sessao))

        if path.startswith(ROTAS_COMPARTILHADAS):
            if sessao is None:
                return _para_login(LOGIN_ADMIN, 'login_required')
            if not sessao.aprovado:
                return _conta_nao_aprovada(sessao)
            return None

        if path.startswith(ROTAS_ADMIN):
            if not isinstance(sessao, SessaoAdmin):
                return _para_login(LOGIN_ADMIN, 'login_required')
            if not sessao.aprovado:
                return _conta_nao_aprovada(sessao)
            return None

        if path.startswith(ROTAS_PARCEIRO):
            if isinstance(sessao, SessaoAdmin):
                return redirect(HOME_ADMIN)
            if not isinstance(sessao, SessaoParceiro):
                return _para_login(LOGIN_PARCEIRO, 'login_required')
            if not sessao.aprovado:
                return _conta_nao_aprovada(sessao)
            return None

        if sessao is None:
            return _para_login(LOGIN_ADMIN, 'login_required')
        return None
