"""
Fixtures compartilhadas para os testes do FreelaOS.
"""
import pytest
from django.conf import settings
from django.contrib.auth.models import User
from django.test import Client

from accounts.models import PerfilUsuario
from accounts.services import sessao_do_usuario, sessao_do_parceiro
from accounts.sessao import emitir_token
from ordens import services
from ordens.models import Parceiro


def _client_com_sessao(sessao):
    client = Client()
    client.cookies[settings.SESSAO_COOKIE_NAME] = emitir_token(sessao)
    return client


@pytest.fixture
def usuario_admin(db):
    """Usuário interno administrador e aprovado."""
    user = User.objects.create_user(username='admin_teste', password='senha123')
    PerfilUsuario.objects.create(usuario=user, is_admin=True, aprovado=True)
    return user


@pytest.fixture
def usuario_pendente(db):
    """Usuário interno que ainda aguarda aprovação."""
    user = User.objects.create_user(username='pendente_teste', password='senha123')
    PerfilUsuario.objects.create(usuario=user, is_admin=False, aprovado=False)
    return user


@pytest.fixture
def parceiro(db):
    """Parceiro aprovado, com login e e-mail."""
    parceiro = Parceiro(
        nome='Estúdio Parceiro',
        username='estudio',
        email='contato@estudio.com',
        aprovado=True,
    )
    parceiro.definir_senha('senha123')
    parceiro.save()
    return parceiro


@pytest.fixture
def outro_parceiro(db):
    parceiro = Parceiro(nome='Outro Parceiro', username='outro', email='outro@parceiro.com', aprovado=True)
    parceiro.definir_senha('senha123')
    parceiro.save()
    return parceiro


@pytest.fixture
def sessao_admin(usuario_admin):
    return sessao_do_usuario(usuario_admin)


@pytest.fixture
def sessao_parceiro(parceiro):
    return sessao_do_parceiro(parceiro)


@pytest.fixture
def client_admin(sessao_admin):
    """Client com o cookie de sessão de um administrador."""
    return _client_com_sessao(sessao_admin)


@pytest.fixture
def client_parceiro(sessao_parceiro):
    """Client com o cookie de sessão de um parceiro."""
    return _client_com_sessao(sessao_parceiro)


@pytest.fixture
def client_pendente(usuario_pendente):
    return _client_com_sessao(sessao_do_usuario(usuario_pendente))


@pytest.fixture
def ordem(db):
    """OS criada por um administrador, na fila."""
    return services.criar_os({
        'cliente': 'Acme',
        'projeto': 'Website',
        'tarefa': 'Build homepage',
        'status': 'na_fila',
    })


@pytest.fixture
def ordem_do_parceiro(parceiro):
    """OS enviada por parceiro, aguardando aprovação."""
    return services.criar_os({
        'cliente': 'Cliente do Parceiro',
        'projeto': 'Identidade Visual',
        'tarefa': 'Criar logotipo',
    }, criador=parceiro)
