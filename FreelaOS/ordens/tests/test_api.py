"""
Testes da API REST das OS, clientes, parceiros, notificações e relatórios.
"""
import pytest

from ordens import services
from ordens.models import OrdemServico, Notificacao, StatusOS

JSON = 'application/json'


class TestAutenticacaoDaAPI:

    def test_sem_sessao_retorna_401(self, client, db):
        response = client.get('/api/os/')
        assert response.status_code == 401

    def test_conta_nao_aprovada_retorna_401(self, client_pendente):
        assert client_pendente.get('/api/os/').status_code == 401

    def test_cookie_adulterado_retorna_401(self, client, db, settings):
        client.cookies[settings.SESSAO_COOKIE_NAME] = 'token-invalido'
        assert client.get('/api/os/').status_code == 401


class TestOrdemServicoAPI:

    def test_admin_lista_todas(self, client_admin, ordem, ordem_do_parceiro):
        response = client_admin.get('/api/os/')
        assert response.status_code == 200
        assert {item['numero'] for item in response.json()} == {ordem.numero, ordem_do_parceiro.numero}

    def test_filtro_por_status(self, client_admin, ordem, ordem_do_parceiro):
        response = client_admin.get('/api/os/', {'status': 'aguardando_aprovacao'})
        assert [item['id'] for item in response.json()] == [ordem_do_parceiro.pk]

    def test_parceiro_lista_apenas_as_suas(self, client_parceiro, ordem, ordem_do_parceiro):
        response = client_parceiro.get('/api/os/')
        assert [item['id'] for item in response.json()] == [ordem_do_parceiro.pk]
        assert client_parceiro.get(f'/api/os/{ordem.pk}/').status_code == 404

    def test_admin_cria_os(self, client_admin):
        response = client_admin.post('/api/os/', {
            'cliente': 'Acme',
            'projeto': 'Website',
            'tarefa': 'Build homepage',
            'status': 'na_fila',
            'checklist': ['Home', 'Contato'],
            'programado_para': '2025-06-01',
        }, content_type=JSON)
        assert response.status_code == 201
        dados = response.json()
        assert dados['numero'] == '000001'
        assert dados['status'] == 'na_fila'
        assert dados['status_display'] == 'Na Fila'
        assert dados['programado_para'] == '2025-06-01'
        assert dados['cronometro_ativo'] is False
        assert len(dados['checklist']) == 2

    def test_parceiro_cria_os_aguardando_aprovacao(self, client_parceiro, parceiro):
        response = client_parceiro.post('/api/os/', {
            'cliente': 'Cliente Novo',
            'projeto': 'Folder',
            'tarefa': 'Diagramação',
            'status': 'em_producao',
        }, content_type=JSON)
        assert response.status_code == 201
        assert response.json()['status'] == 'aguardando_aprovacao'
        assert response.json()['criado_por_parceiro'] == parceiro.nome

    def test_criacao_sem_campos_obrigatorios(self, client_admin):
        response = client_admin.post('/api/os/', {'cliente': 'Acme'}, content_type=JSON)
        assert response.status_code == 400
        assert 'Campos obrigatórios' in response.json()['error']

    def test_urgente_false_em_texto(self, client_admin):
        response = client_admin.post('/api/os/', {
            'cliente': 'Acme', 'projeto': 'Website', 'tarefa': 'Build homepage', 'urgente': 'false',
        }, content_type=JSON)
        assert response.status_code == 201
        assert response.json()['urgente'] is False

    def test_editar_urgente_com_zero(self, client_admin, ordem):
        services.alternar_urgencia(ordem.pk)
        response = client_admin.patch(f'/api/os/{ordem.pk}/', {'urgente': '0'}, content_type=JSON)
        assert response.status_code == 200
        assert response.json()['urgente'] is False

    def test_checklist_em_texto(self, client_admin):
        response = client_admin.post('/api/os/', {
            'cliente': 'Acme', 'projeto': 'Website', 'tarefa': 'Build homepage', 'checklist': 'Revisar',
        }, content_type=JSON)
        assert response.status_code == 400
        assert response.json()['error'] == 'O checklist deve ser uma lista de itens.'
        assert not OrdemServico.objects.exists()

    def test_admin_edita_os(self, client_admin, ordem):
        response = client_admin.patch(f'/api/os/{ordem.pk}/', {'projeto': 'Website 2.0'}, content_type=JSON)
        assert response.status_code == 200
        assert response.json()['projeto'] == 'Website 2.0'

    def test_editar_os_inexistente(self, client_admin):
        response = client_admin.patch('/api/os/999/', {'projeto': 'X'}, content_type=JSON)
        assert response.status_code == 404

    def test_parceiro_nao_edita(self, client_parceiro, ordem_do_parceiro):
        response = client_parceiro.patch(f'/api/os/{ordem_do_parceiro.pk}/', {'projeto': 'X'}, content_type=JSON)
        assert response.status_code == 403

    def test_aprovar_os(self, client_admin, ordem_do_parceiro, mailoutbox):
        response = client_admin.post(f'/api/os/{ordem_do_parceiro.pk}/status/', {'status': 'na_fila'}, content_type=JSON)
        assert response.status_code == 200
        assert response.json()['status'] == 'na_fila'
        assert Notificacao.objects.filter(tipo='os_aprovada').count() == 1
        assert len(mailoutbox) == 1

    def test_parceiro_nao_aprova(self, client_parceiro, ordem_do_parceiro):
        response = client_parceiro.post(f'/api/os/{ordem_do_parceiro.pk}/status/', {'status': 'na_fila'}, content_type=JSON)
        assert response.status_code == 403
        ordem_do_parceiro.refresh_from_db()
        assert ordem_do_parceiro.status == StatusOS.AGUARDANDO_APROVACAO

    def test_status_invalido_ou_ausente(self, client_admin, ordem):
        assert client_admin.post(f'/api/os/{ordem.pk}/status/', {}, content_type=JSON).status_code == 400
        response = client_admin.post(f'/api/os/{ordem.pk}/status/', {'status': 'cancelada'}, content_type=JSON)
        assert response.status_code == 400
        assert 'Status inválido' in response.json()['error']

    def test_status_os_inexistente(self, client_admin):
        response = client_admin.post('/api/os/999/status/', {'status': 'finalizado'}, content_type=JSON)
        assert response.status_code == 404

    def test_cronometro(self, client_admin, ordem):
        response = client_admin.post(f'/api/os/{ordem.pk}/cronometro/', {'acao': 'iniciar'}, content_type=JSON)
        assert response.status_code == 200
        assert response.json()['status'] == 'em_producao'
        assert response.json()['cronometro_ativo'] is True

        response = client_admin.post(f'/api/os/{ordem.pk}/cronometro/', {'acao': 'pausar'}, content_type=JSON)
        assert response.json()['status'] == 'na_fila'
        assert response.json()['inicio_sessao_producao'] is None

    def test_cronometro_acao_invalida(self, client_admin, ordem):
        response = client_admin.post(f'/api/os/{ordem.pk}/cronometro/', {'acao': 'parar'}, content_type=JSON)
        assert response.status_code == 400

    def test_urgencia(self, client_admin, ordem):
        response = client_admin.post(f'/api/os/{ordem.pk}/urgencia/')
        assert response.status_code == 200
        assert response.json()['urgente'] is True

    def test_duplicar(self, client_admin, ordem):
        response = client_admin.post(f'/api/os/{ordem.pk}/duplicar/')
        assert response.status_code == 201
        assert response.json()['projeto'] == 'Website (Cópia)'
        assert OrdemServico.objects.count() == 2
        assert client_admin.post('/api/os/999/duplicar/').status_code == 404


class TestEntidadesAPI:

    def test_parceiro_nao_acessa_clientes(self, client_parceiro):
        assert client_parceiro.get('/api/clientes/').status_code == 403

    def test_listar_clientes(self, client_admin, ordem):
        response = client_admin.get('/api/clientes/')
        assert response.status_code == 200
        assert response.json()[0]['nome'] == 'Acme'
        assert response.json()[0]['total_os'] == 1

    def test_excluir_cliente_com_os(self, client_admin, ordem):
        response = client_admin.delete(f'/api/clientes/{ordem.cliente_id}/')
        assert response.status_code == 400
        assert 'Desassocie-o das OSs primeiro' in response.json()['error']

    def test_excluir_cliente_sem_os(self, client_admin):
        cliente = services.buscar_ou_criar_cliente('Sem OS')
        assert client_admin.delete(f'/api/clientes/{cliente.pk}/').status_code == 204
        assert client_admin.delete(f'/api/clientes/{cliente.pk}/').status_code == 404

    def test_criar_parceiro(self, client_admin):
        response = client_admin.post('/api/parceiros/', {
            'nome': 'Agência Z',
            'username': 'agenciaz',
            'email': 'z@agencia.com',
            'senha': 'segredo1',
            'aprovado': True,
        }, content_type=JSON)
        assert response.status_code == 201
        dados = response.json()
        assert dados['tem_login'] is True
        assert 'password_hash' not in dados
        assert 'senha' not in dados

    def test_criar_parceiro_aprovado_false_em_texto(self, client_admin):
        response = client_admin.post('/api/parceiros/', {
            'nome': 'Agência Y', 'username': 'agenciay', 'senha': 'segredo1', 'aprovado': 'false',
        }, content_type=JSON)
        assert response.status_code == 201
        assert response.json()['aprovado'] is False

    def test_listar_parceiros_sem_hash(self, client_admin, parceiro):
        response = client_admin.get('/api/parceiros/')
        assert response.status_code == 200
        assert all('password_hash' not in item for item in response.json())

    def test_parceiro_username_duplicado(self, client_admin, parceiro):
        response = client_admin.post('/api/parceiros/', {
            'nome': 'Outro', 'username': parceiro.username, 'senha': 'segredo1',
        }, content_type=JSON)
        assert response.status_code == 400
        assert response.json()['error'] == 'Este nome de usuário já está em uso.'


class TestNotificacoesAPI:

    def test_nao_lidas_e_marcar_todas(self, client_admin, ordem):
        services.alterar_status(ordem.pk, 'aguardando_cliente')
        services.alterar_status(ordem.pk, 'em_producao')
        assert client_admin.get('/api/notificacoes/nao-lidas/').json() == {'count': 2}

        response = client_admin.post('/api/notificacoes/marcar-todas-lidas/')
        assert response.json() == {'marcadas': 2}
        assert client_admin.get('/api/notificacoes/nao-lidas/').json() == {'count': 0}

    def test_marcar_lida(self, client_parceiro, ordem_do_parceiro):
        services.alterar_status(ordem_do_parceiro.pk, 'na_fila')
        notificacao = Notificacao.objects.get(tipo='os_aprovada')
        response = client_parceiro.post(f'/api/notificacoes/{notificacao.pk}/marcar-lida/')
        assert response.status_code == 200
        assert response.json()['lida'] is True

    def test_parceiro_nao_marca_notificacao_de_admin(self, client_parceiro, ordem_do_parceiro):
        notificacao = Notificacao.objects.get(tipo='os_criada_por_parceiro')
        response = client_parceiro.post(f'/api/notificacoes/{notificacao.pk}/marcar-lida/')
        assert response.status_code == 404


class TestRelatoriosAPI:

    def test_tempo_producao(self, client_admin, ordem):
        services.alterar_status(ordem.pk, 'finalizado')
        response = client_admin.get('/api/relatorios/tempo-producao/', {'ordenar_por': 'numero', 'direcao': 'asc'})
        assert response.status_code == 200
        assert response.json()['total_ordens'] == 1

    def test_ordenacao_invalida(self, client_admin):
        response = client_admin.get('/api/relatorios/tempo-producao/', {'ordenar_por': 'senha'})
        assert response.status_code == 400

    def test_por_entidade(self, client_admin, ordem):
        response = client_admin.get('/api/relatorios/por-entidade/', {'cliente': ordem.cliente_id, 'status': 'active'})
        assert response.status_code == 200
        assert response.json()['ordens'][0]['numero'] == ordem.numero

    @pytest.mark.parametrize('params,mensagem', [
        ({'cliente': 'abc'}, 'ID de cliente inválido.'),
        ({'parceiro': '1.5'}, 'ID de parceiro inválido.'),
    ])
    def test_por_entidade_id_invalido(self, client_admin, params, mensagem):
        response = client_admin.get('/api/relatorios/por-entidade/', params)
        assert response.status_code == 400
        assert response.json()['error'] == mensagem

    @pytest.mark.parametrize('url', ['/api/relatorios/tempo-producao/', '/api/relatorios/por-entidade/'])
    def test_parceiro_sem_acesso(self, client_parceiro, url):
        assert client_parceiro.get(url).status_code == 403
