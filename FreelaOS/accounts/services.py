"""
Fluxos de autenticação: login de usuários internos e de parceiros, registro,
troca de senha e aprovação de contas.
"""
import logging
from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.db import transaction, IntegrityError
from django.db.models import Q
from ordens.models import Parceiro
from ordens.utils import para_booleano
from .models import PerfilUsuario
from .sessao import SessaoAdmin, SessaoParceiro

logger = logging.getLogger(__name__)

SENHA_MINIMA = 6


class ErroAutenticacao(Exception):
    """Credenciais inválidas ou conta não aprovada. A mensagem pode ser exibida ao usuário."""


def _perfil(user):
    """Perfil do usuário; superusuários criados pelo createsuperuser ganham um perfil de admin."""
    perfil = PerfilUsuario.objects.filter(usuario=user).first()
    if perfil is None:
        perfil = PerfilUsuario.objects.create(
            usuario=user,
            is_admin=user.is_superuser,
            aprovado=user.is_superuser,
        )
    return perfil


def sessao_do_usuario(user):
    perfil = _perfil(user)
    return SessaoAdmin(id=user.pk, username=user.username, is_admin=perfil.is_admin, aprovado=perfil.aprovado)


def sessao_do_parceiro(parceiro):
    return SessaoParceiro(
        id=parceiro.pk,
        username=parceiro.username,
        nome_parceiro=parceiro.nome,
        email=parceiro.email or '',
        aprovado=parceiro.aprovado,
    )


def autenticar_admin(username, senha):
    """Login de usuário interno. Retorna SessaoAdmin ou levanta ErroAutenticacao/ValidationError."""
    username = (username or '').strip()
    if not username or not senha:
        raise ValidationError('Usuário e senha são obrigatórios.')

    user = User.objects.filter(username=username, is_active=True).first()
    if user is None:
        logger.info(f"Login recusado: usuário {username} não encontrado")
        raise ErroAutenticacao('Credenciais inválidas ou usuário não encontrado.')
    if not user.check_password(senha):
        logger.info(f"Login recusado: senha incorreta para {username}")
        raise ErroAutenticacao('Credenciais inválidas.')

    sessao = sessao_do_usuario(user)
    if not sessao.aprovado:
        raise ErroAutenticacao('Sua conta ainda não foi aprovada por um administrador.')
    logger.info(f"Login de {username} (admin={sessao.is_admin})")
    return sessao


def autenticar_parceiro(identificador, senha):
    """Login de parceiro por username ou e-mail. Só parceiros com senha e aprovados entram."""
    identificador = (identificador or '').strip()
    if not identificador or not senha:
        raise ValidationError('Usuário (ou e-mail) e senha são obrigatórios.')

    parceiro = (
        Parceiro.objects
        .filter(Q(username=identificador) | Q(email__iexact=identificador))
        .exclude(password_hash__isnull=True)
        .exclude(password_hash='')
        .first()
    )
    if parceiro is None or not parceiro.verificar_senha(senha):
        logger.info(f"Login de parceiro recusado para {identificador}")
        raise ErroAutenticacao('Credenciais inválidas.')
    if not parceiro.aprovado:
        raise ErroAutenticacao('Sua conta de parceiro ainda não foi aprovada por um administrador.')

    logger.info(f"Login do parceiro {parceiro.nome} ({parceiro.username})")
    return sessao_do_parceiro(parceiro)


def registrar_usuario(username, senha):
    """
    Registra um usuário interno.
    O primeiro usuário do sistema vira administrador aprovado; os demais aguardam aprovação.
    """
    username = (username or '').strip()
    if not username or not senha:
        raise ValidationError('Usuário e senha são obrigatórios.')
    if len(senha) < SENHA_MINIMA:
        raise ValidationError(f'A senha deve ter pelo menos {SENHA_MINIMA} caracteres.')

    try:
        with transaction.atomic():
            if User.objects.filter(username__iexact=username).exists():
                raise ValidationError('Este nome de usuário já está em uso.')
            primeiro = not User.objects.exists()
            user = User.objects.create_user(username=username, password=senha)
            perfil = PerfilUsuario.objects.create(usuario=user, is_admin=primeiro, aprovado=primeiro)
    except IntegrityError:
        raise ValidationError('Este nome de usuário já está em uso.')

    logger.info(f"Usuário {username} registrado (primeiro usuário: {primeiro})")
    return user, perfil


def alterar_senha(sessao, senha_atual, nova_senha, confirmacao):
    """Troca a senha do usuário ou parceiro da sessão."""
    if not senha_atual or not nova_senha or not confirmacao:
        raise ValidationError('Todos os campos são obrigatórios.')
    if len(nova_senha) < SENHA_MINIMA:
        raise ValidationError(f'A nova senha deve ter pelo menos {SENHA_MINIMA} caracteres.')
    if nova_senha != confirmacao:
        raise ValidationError('As novas senhas não coincidem.')

    if isinstance(sessao, SessaoParceiro):
        conta = Parceiro.objects.filter(pk=sessao.id).first()
        if conta is None or not conta.tem_login:
            raise ValidationError('Usuário não encontrado ou não possui senha configurada.')
        if not conta.verificar_senha(senha_atual):
            raise ValidationError('A senha atual está incorreta.')
        conta.definir_senha(nova_senha)
        conta.save(update_fields=['password_hash', 'atualizado_em'])
    else:
        conta = User.objects.filter(pk=sessao.id).first()
        if conta is None:
            raise ValidationError('Usuário não encontrado ou não possui senha configurada.')
        if not conta.check_password(senha_atual):
            raise ValidationError('A senha atual está incorreta.')
        conta.set_password(nova_senha)
        conta.save(update_fields=['password'])

    logger.info(f"Senha alterada para {sessao.tipo} {sessao.username}")


def listar_usuarios_pendentes():
    return PerfilUsuario.objects.filter(aprovado=False).select_related('usuario').order_by('criado_em')


def aprovar_usuario(usuario_id, is_admin=None):
    """Aprova a conta (e opcionalmente define se é administrador). Retorna None se não existir."""
    user = User.objects.filter(pk=usuario_id).first()
    if user is None:
        return None
    perfil = _perfil(user)
    perfil.aprovado = True
    if is_admin is not None:
        perfil.is_admin = para_booleano(is_admin, campo='is_admin')
    perfil.save(update_fields=['aprovado', 'is_admin'])
    logger.info(f"Usuário {user.username} aprovado (admin={perfil.is_admin})")
    return perfil
