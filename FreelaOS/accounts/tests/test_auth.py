"""
Testes de login, registro, troca de senha e aprovação de usuários.
"""
import pytest
from django.conf import settings
from django.contrib.auth.models import User

from accounts.models import PerfilUsuario
from accounts.sessao import ler_token
from ordens import services as ordens_services

JSON = 'application/json'


def _sessao_do_cookie(response):
    return ler_token(response.cookies[settings.SESSAO_COOKIE_NAME].value)


class TestRegistro:

    def test_primeiro_usuario_vira_admin_logado(self, client, db):
        response = client.post('/api/auth/registro/', {'username': 'fundador', 'password': 'senha123'}, content_type=JSON)
        assert response.status_code == 201
        assert response.json()['redirect'] == '/dashboard/'
        sessao = _sessao_do_cookie(response)
        assert sessao.is_admin is True
        assert sessao.aprovado is True

    def test_demais_aguardam_aprovacao(self, client, usuario_admin):
        response = client.post('/api/auth/registro/', {'username': 'novato', 'password': 'senha123'}, content_type=JSON)
        assert response.status_code == 201
        assert response.json()['redirect'] == '/login/?status=pending_approval'
        assert settings.SESSAO_COOKIE_NAME not in response.cookies
        perfil = PerfilUsuario.objects.get(usuario__username='novato')
        assert perfil.aprovado is False
        assert perfil.is_admin is False

    def test_username_duplicado(self, client, usuario_admin):
        response = client.post('/api/auth/registro/', {'username': 'ADMIN_TESTE', 'password': 'senha123'}, content_type=JSON)
        assert response.status_code == 400
        assert response.json()['error'] == 'Este nome de usuário já está em uso.'

    def test_senha_curta(self, client, db):
        response = client.post('/api/auth/registro/', {'username': 'x', 'password': '123'}, content_type=JSON)
        assert response.status_code == 400
        assert not User.objects.exists()


class TestLogin:

    def test_login_admin(self, client, usuario_admin):
        response = client.post('/api/auth/login/', {'username': 'admin_teste', 'password': 'senha123'}, content_type=JSON)
        assert response.status_code == 200
        assert response.json()['sessao']['tipo'] == 'admin'
        cookie = response.cookies[settings.SESSAO_COOKIE_NAME]
        assert cookie['httponly']
        assert cookie['samesite'] == 'Lax'

    def test_senha_errada(self, client, usuario_admin):
        response = client.post('/api/auth/login/', {'username': 'admin_teste', 'password': 'errada'}, content_type=JSON)
        assert response.status_code == 401
        assert response.json()['error'] == 'Credenciais inválidas.'

    def test_usuario_nao_aprovado(self, client, usuario_pendente):
        response = client.post('/api/auth/login/', {'username': 'pendente_teste', 'password': 'senha123'}, content_type=JSON)
        assert response.status_code == 401
        assert 'ainda não foi aprovada' in response.json()['error']

    def test_campos_vazios(self, client, db):
        assert client.post('/api/auth/login/', {}, content_type=JSON).status_code == 400

    def test_superusuario_sem_perfil(self, client, db):
        User.objects.create_superuser(username='root', password='senha123', email='root@x.com')
        response = client.post('/api/auth/login/', {'username': 'root', 'password': 'senha123'}, content_type=JSON)
        assert response.status_code == 200
        assert response.json()['sessao']['is_admin'] is True

    def test_login_parceiro_por_email(self, client, parceiro):
        response = client.post('/api/auth/login-parceiro/', {'email': 'CONTATO@estudio.com', 'password': 'senha123'},
                               content_type=JSON)
        assert response.status_code == 200
        assert response.json()['redirect'] == '/parceiro/dashboard/'
        sessao = _sessao_do_cookie(response)
        assert sessao.nome_parceiro == parceiro.nome
        assert sessao.id == parceiro.pk

    def test_parceiro_sem_login_nao_entra(self, client, db):
        executor = ordens_services.buscar_ou_criar_parceiro('Freela Ana')
        response = client.post('/api/auth/login-parceiro/', {'username': executor.username, 'password': 'qualquer'},
                               content_type=JSON)
        assert response.status_code == 401

    def test_parceiro_nao_aprovado(self, client, parceiro):
        parceiro.aprovado = False
        parceiro.save()
        response = client.post('/api/auth/login-parceiro/', {'username': 'estudio', 'password': 'senha123'},
                               content_type=JSON)
        assert response.status_code == 401
        assert 'ainda não foi aprovada' in response.json()['error']

    def test_logout_remove_cookie(self, client_admin):
        response = client_admin.post('/api/auth/logout/')
        assert response.status_code == 200
        assert response.cookies[settings.SESSAO_COOKIE_NAME].value == ''


class TestSessaoAtual:

    def test_sem_cookie(self, client, db):
        response = client.get('/api/session/')
        assert response.status_code == 200
        assert response.json() is None

    def test_cookie_invalido_e_removido(self, client, db):
        client.cookies[settings.SESSAO_COOKIE_NAME] = 'lixo'
        response = client.get('/api/session/')
        assert response.json() is None
        assert response.cookies[settings.SESSAO_COOKIE_NAME].value == ''

    def test_sessao_do_parceiro(self, client_parceiro, parceiro):
        dados = client_parceiro.get('/api/session/').json()
        assert dados['tipo'] == 'parceiro'
        assert dados['email'] == parceiro.email


class TestAlterarSenha:

    URL = '/api/auth/alterar-senha/'

    def test_admin_troca_senha(self, client_admin, client):
        response = client_admin.post(self.URL, {
            'senha_atual': 'senha123', 'nova_senha': 'nova1234', 'confirmacao': 'nova1234',
        }, content_type=JSON)
        assert response.status_code == 200
        login = client.post('/api/auth/login/', {'username': 'admin_teste', 'password': 'nova1234'}, content_type=JSON)
        assert login.status_code == 200

    def test_parceiro_troca_senha(self, client_parceiro, parceiro):
        response = client_parceiro.post(self.URL, {
            'senha_atual': 'senha123', 'nova_senha': 'nova1234', 'confirmacao': 'nova1234',
        }, content_type=JSON)
        assert response.status_code == 200
        parceiro.refresh_from_db()
        assert parceiro.verificar_senha('nova1234')

    @pytest.mark.parametrize('dados,mensagem', [
        ({'senha_atual': 'errada', 'nova_senha': 'nova1234', 'confirmacao': 'nova1234'}, 'A senha atual está incorreta.'),
        ({'senha_atual': 'senha123', 'nova_senha': 'nova1234', 'confirmacao': 'outra123'}, 'As novas senhas não coincidem.'),
        ({'senha_atual': 'senha123', 'nova_senha': '123', 'confirmacao': '123'}, 'A nova senha deve ter pelo menos 6 caracteres.'),
        ({'senha_atual': 'senha123'}, 'Todos os campos são obrigatórios.'),
    ])
    def test_erros(self, client_admin, dados, mensagem):
        response = client_admin.post(self.URL, dados, content_type=JSON)
        assert response.status_code == 400
        assert response.json()['error'] == mensagem

    def test_sem_sessao(self, client, db):
        assert client.post(self.URL, {}, content_type=JSON).status_code == 401


class TestAprovacaoDeUsuarios:

    def test_listar_pendentes(self, client_admin, usuario_pendente):
        response = client_admin.get('/api/auth/usuarios-pendentes/')
        assert response.status_code == 200
        assert [u['username'] for u in response.json()] == ['pendente_teste']

    def test_parceiro_nao_acessa(self, client_parceiro):
        assert client_parceiro.get('/api/auth/usuarios-pendentes/').status_code == 403

    def test_aprovar(self, client_admin, usuario_pendente):
        response = client_admin.post(f'/api/auth/usuarios/{usuario_pendente.pk}/aprovar/', {'is_admin': True},
                                     content_type=JSON)
        assert response.status_code == 200
        perfil = PerfilUsuario.objects.get(usuario=usuario_pendente)
        assert perfil.aprovado is True
        assert perfil.is_admin is True

    @pytest.mark.parametrize('valor', ['false', '0', False])
    def test_aprovar_sem_tornar_admin(self, client_admin, usuario_pendente, valor):
        response = client_admin.post(f'/api/auth/usuarios/{usuario_pendente.pk}/aprovar/', {'is_admin': valor},
                                     content_type=JSON)
        assert response.status_code == 200
        assert response.json()['is_admin'] is False
        perfil = PerfilUsuario.objects.get(usuario=usuario_pendente)
        assert perfil.aprovado is True
        assert perfil.is_admin is False

    def test_aprovar_com_is_admin_invalido(self, client_admin, usuario_pendente):
        response = client_admin.post(f'/api/auth/usuarios/{usuario_pendente.pk}/aprovar/', {'is_admin': 'talvez'},
                                     content_type=JSON)
        assert response.status_code == 400
        assert PerfilUsuario.objects.get(usuario=usuario_pendente).aprovado is False

    def test_aprovar_inexistente(self, client_admin):
        assert client_admin.post('/api/auth/usuarios/999/aprovar/').status_code == 404
