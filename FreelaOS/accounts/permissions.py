"""
Permissões da API do FreelaOS baseadas no tipo de sessão.
"""
from rest_framework import permissions
from .sessao import SessaoAdmin, SessaoParceiro


def _sessao(request):
    user = getattr(request, 'user', None)
    if isinstance(user, (SessaoAdmin, SessaoParceiro)):
        return user
    return None


class SessaoAprovada(permissions.BasePermission):
    """Qualquer sessão válida (admin ou parceiro) de conta aprovada."""
    message = 'Sessão inválida ou conta não aprovada.'

    def has_permission(self, request, view):
        sessao = _sessao(request)
        return bool(sessao and sessao.aprovado)


class IsAdminSessao(permissions.BasePermission):
    """Somente administradores aprovados."""
    message = 'Acesso restrito a administradores.'

    def has_permission(self, request, view):
        sessao = _sessao(request)
        return bool(isinstance(sessao, SessaoAdmin) and sessao.aprovado and sessao.is_admin)


class IsAdminOuLeitura(permissions.BasePermission):
    """
    Leitura para qualquer sessão aprovada; escrita só para administradores.
    Criação (POST na lista) é liberada para parceiros: a OS entra aguardando aprovação.
    """
    message = 'Apenas administradores podem alterar esta OS.'

    def has_permission(self, request, view):
        sessao = _sessao(request)
        if not (sessao and sessao.aprovado):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        if getattr(view, 'action', None) == 'create':
            return True
        return isinstance(sessao, SessaoAdmin) and sessao.is_admin
