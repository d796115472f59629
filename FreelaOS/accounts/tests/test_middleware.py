"""
Controle de acesso às páginas pelo SessaoOSMiddleware.
"""
import pytest
from django.conf import settings


class TestSemSessao:

    @pytest.mark.parametrize('url', ['/', '/dashboard/', '/relatorios/', '/configuracoes/'])
    def test_redireciona_para_login(self, client, db, url):
        response = client.get(url)
        assert response.status_code == 302
        assert response['Location'] == '/login/?status=login_required'

    def test_area_do_parceiro_vai_para_login_do_parceiro(self, client, db):
        response = client.get('/parceiro/dashboard/')
        assert response['Location'] == '/login-parceiro/?status=login_required'

    def test_api_nao_redireciona(self, client, db):
        assert client.get('/api/os/').status_code == 401

    def test_health_e_publico(self, client, db):
        assert client.get('/health/').status_code == 200


class TestSessaoAdmin:

    def test_raiz_vai_para_dashboard(self, client_admin):
        response = client_admin.get('/')
        assert response['Location'] == '/dashboard/'

    def test_dashboard(self, client_admin, ordem):
        response = client_admin.get('/dashboard/')
        assert response.status_code == 200
        resumo = response.json()['resumo']
        assert resumo['total'] == 1
        assert resumo['por_status']['na_fila'] == 1
        assert resumo['por_status']['finalizado'] == 0

    def test_login_com_sessao_vai_para_dashboard(self, client_admin):
        assert client_admin.get('/login/')['Location'] == '/dashboard/'

    def test_admin_na_area_do_parceiro(self, client_admin):
        assert client_admin.get('/parceiro/dashboard/')['Location'] == '/dashboard/'


class TestSessaoParceiro:

    def test_raiz_vai_para_dashboard_do_parceiro(self, client_parceiro):
        assert client_parceiro.get('/')['Location'] == '/parceiro/dashboard/'

    def test_parceiro_nao_entra_na_area_admin(self, client_parceiro):
        response = client_parceiro.get('/dashboard/')
        assert response['Location'] == '/login/?status=login_required'

    def test_dashboard_do_parceiro(self, client_parceiro, ordem, ordem_do_parceiro):
        response = client_parceiro.get('/parceiro/dashboard/')
        assert response.status_code == 200
        dados = response.json()
        assert dados['resumo']['total'] == 1
        assert dados['resumo']['por_status']['aguardando_aprovacao'] == 1
        assert dados['sessao']['tipo'] == 'parceiro'


class TestContaNaoAprovada:

    def test_admin_pendente_e_deslogado(self, client_pendente):
        response = client_pendente.get('/dashboard/')
        assert response['Location'] == '/login/?status=not_approved'
        assert response.cookies[settings.SESSAO_COOKIE_NAME].value == ''

    def test_parceiro_pendente(self, client, parceiro):
        from accounts.services import sessao_do_parceiro
        from accounts.sessao import emitir_token

        parceiro.aprovado = False
        client.cookies[settings.SESSAO_COOKIE_NAME] = emitir_token(sessao_do_parceiro(parceiro))
        response = client.get('/parceiro/dashboard/')
        assert response['Location'] == '/login-parceiro/?status=not_approved'
