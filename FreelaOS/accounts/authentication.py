"""
Autenticação DRF a partir do cookie de sessão do FreelaOS.
"""
from rest_framework import authentication
from django.conf import settings
from .sessao import obter_sessao


class SessaoCookieAuthentication(authentication.BaseAuthentication):
    """
    request.user passa a ser a SessaoAdmin/SessaoParceiro decodificada.
    Sem sessão válida (ou com conta não aprovada) a requisição segue anônima
    e as permissões devolvem 401.
    """

    def authenticate(self, request):
        sessao = obter_sessao(request)
        if sessao is None or not sessao.aprovado:
            return None
        return (sessao, request.COOKIES.get(settings.SESSAO_COOKIE_NAME))

    def authenticate_header(self, request):
        return 'Cookie realm="freelaos"'
