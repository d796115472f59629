"""
Endpoints de autenticação do FreelaOS (JSON).
"""
from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .permissions import IsAdminSessao, SessaoAprovada
from .sessao import obter_sessao, definir_cookie_sessao, limpar_cookie_sessao
from . import services


def _erro_validacao(e):
    return Response({'error': ' '.join(e.messages)}, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login(request):
    """Login de usuário interno (username + senha)."""
    try:
        sessao = services.autenticar_admin(request.data.get('username'), request.data.get('password'))
    except ValidationError as e:
        return _erro_validacao(e)
    except services.ErroAutenticacao as e:
        return Response({'error': str(e)}, status=status.HTTP_401_UNAUTHORIZED)

    response = Response({
        'mensagem': 'Login bem-sucedido!',
        'redirect': '/dashboard/',
        'sessao': sessao.as_dict(),
    })
    return definir_cookie_sessao(response, sessao)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login_parceiro(request):
    """Login de parceiro (username ou e-mail + senha)."""
    identificador = request.data.get('username') or request.data.get('email')
    try:
        sessao = services.autenticar_parceiro(identificador, request.data.get('password'))
    except ValidationError as e:
        return _erro_validacao(e)
    except services.ErroAutenticacao as e:
        return Response({'error': str(e)}, status=status.HTTP_401_UNAUTHORIZED)

    response = Response({
        'mensagem': 'Login bem-sucedido!',
        'redirect': '/parceiro/dashboard/',
        'sessao': sessao.as_dict(),
    })
    return definir_cookie_sessao(response, sessao)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def registro(request):
    """Registro de usuário interno. O primeiro usuário já entra logado como administrador."""
    try:
        user, perfil = services.registrar_usuario(request.data.get('username'), request.data.get('password'))
    except ValidationError as e:
        return _erro_validacao(e)

    if perfil.aprovado:
        sessao = services.sessao_do_usuario(user)
        response = Response({
            'mensagem': 'Registro e login bem-sucedidos como administrador!',
            'redirect': '/dashboard/',
            'sessao': sessao.as_dict(),
        }, status=status.HTTP_201_CREATED)
        return definir_cookie_sessao(response, sessao)

    return Response({
        'mensagem': 'Registro bem-sucedido! Sua conta aguarda aprovação de um administrador.',
        'redirect': '/login/?status=pending_approval',
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def logout(request):
    response = Response({
        'mensagem': 'Você foi desconectado.',
        'redirect': '/login/?status=logged_out',
    })
    return limpar_cookie_sessao(response)


@api_view(['POST'])
@permission_classes([SessaoAprovada])
def alterar_senha(request):
    try:
        services.alterar_senha(
            request.user,
            request.data.get('senha_atual'),
            request.data.get('nova_senha'),
            request.data.get('confirmacao'),
        )
    except ValidationError as e:
        return _erro_validacao(e)
    return Response({'mensagem': 'Senha alterada com sucesso!'})


@api_view(['GET'])
@permission_classes([IsAdminSessao])
def usuarios_pendentes(request):
    perfis = services.listar_usuarios_pendentes()
    return Response([
        {
            'id': perfil.usuario.pk,
            'username': perfil.usuario.username,
            'criado_em': perfil.criado_em.isoformat(),
        }
        for perfil in perfis
    ])


@api_view(['POST'])
@permission_classes([IsAdminSessao])
def aprovar_usuario(request, usuario_id):
    try:
        perfil = services.aprovar_usuario(usuario_id, request.data.get('is_admin'))
    except ValidationError as e:
        return _erro_validacao(e)
    if perfil is None:
        return Response({'error': 'Usuário não encontrado.'}, status=status.HTTP_404_NOT_FOUND)
    return Response({
        'mensagem': f'Usuário {perfil.usuario.username} aprovado.',
        'id': perfil.usuario.pk,
        'is_admin': perfil.is_admin,
        'aprovado': perfil.aprovado,
    })


@require_http_methods(["GET"])
def sessao_atual(request):
    """
    Sessão decodificada (ou null). Se o cookie existir mas não decodificar, é removido.
    """
    sessao = obter_sessao(request)
    if sessao is None:
        response = JsonResponse(None, safe=False)
        if request.COOKIES.get(settings.SESSAO_COOKIE_NAME):
            limpar_cookie_sessao(response)
        return response
    return JsonResponse(sessao.as_dict())
