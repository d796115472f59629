"""
Notificações in-app e e-mails disparados pelas mudanças de status.
"""
from unittest import mock

from ordens import services
from ordens.models import Notificacao, EmailLog, StatusOS
from ordens.notificacoes import notificacoes_da_sessao, notificar_mudanca_status
from ordens.cronometro import CATEGORIA_APROVACAO, CATEGORIA_GERAL


def test_admin_e_parceiro_veem_notificacoes_diferentes(ordem_do_parceiro, sessao_admin, sessao_parceiro):
    services.alterar_status(ordem_do_parceiro.pk, StatusOS.NA_FILA, aprovador=sessao_admin)

    do_admin = notificacoes_da_sessao(sessao_admin)
    do_parceiro = notificacoes_da_sessao(sessao_parceiro)
    assert [n.tipo for n in do_admin] == ['os_criada_por_parceiro']
    assert [n.tipo for n in do_parceiro] == ['os_aprovada']


def test_parceiro_nao_ve_notificacoes_de_outro(ordem_do_parceiro, outro_parceiro):
    from accounts.services import sessao_do_parceiro

    services.alterar_status(ordem_do_parceiro.pk, 'recusada')
    assert not notificacoes_da_sessao(sessao_do_parceiro(outro_parceiro)).exists()


def test_categoria_retornada(ordem_do_parceiro):
    ordem_do_parceiro.status = StatusOS.NA_FILA
    assert notificar_mudanca_status(ordem_do_parceiro, StatusOS.AGUARDANDO_APROVACAO) == CATEGORIA_APROVACAO
    ordem_do_parceiro.status = StatusOS.FINALIZADO
    assert notificar_mudanca_status(ordem_do_parceiro, StatusOS.NA_FILA) == CATEGORIA_GERAL


def test_email_registrado_no_log(ordem_do_parceiro, mailoutbox):
    services.alterar_status(ordem_do_parceiro.pk, 'na_fila')
    log = EmailLog.objects.get()
    assert log.tipo_email == 'os_aprovada'
    assert log.status == 'enviado'
    assert log.enviado_em is not None
    assert log.destinatarios == 'contato@estudio.com'
    # texto + HTML
    assert mailoutbox[0].alternatives[0][1] == 'text/html'


def test_falha_no_email_nao_desfaz_mudanca(ordem_do_parceiro):
    with mock.patch('ordens.email_utils.time.sleep'), \
            mock.patch('django.core.mail.EmailMultiAlternatives.send', side_effect=OSError('SMTP fora do ar')):
        ordem = services.alterar_status(ordem_do_parceiro.pk, 'na_fila')

    assert ordem.status == StatusOS.NA_FILA
    assert Notificacao.objects.filter(tipo='os_aprovada').count() == 1
    log = EmailLog.objects.get()
    assert log.status == 'falhou'
    assert 'SMTP fora do ar' in log.mensagem_erro


def test_falha_na_notificacao_e_registrada_e_ignorada(ordem):
    with mock.patch('ordens.notificacoes.Notificacao.objects.create', side_effect=RuntimeError('banco travado')), \
            mock.patch('ordens.notificacoes.logger') as logger:
        resultado = services.alterar_status(ordem.pk, 'finalizado')
    assert resultado.status == StatusOS.FINALIZADO
    logger.error.assert_called_once()
    assert 'Erro ao notificar mudança de status' in logger.error.call_args[0][0]


def test_marcar_como_lida(ordem):
    services.alterar_status(ordem.pk, 'aguardando_cliente')
    notificacao = Notificacao.objects.get()
    notificacao.marcar_como_lida()
    notificacao.refresh_from_db()
    assert notificacao.lida is True


def test_html_do_email_escapa_nomes(parceiro, mailoutbox, sessao_admin):
    ordem = services.criar_os({
        'cliente': '<b>Acme</b>', 'projeto': '<script>alert(1)</script>', 'tarefa': 'Banner',
    }, criador=parceiro)
    services.alterar_status(ordem.pk, StatusOS.NA_FILA, aprovador=sessao_admin)

    html = mailoutbox[0].alternatives[0][0]
    assert '<script>' not in html
    assert '&lt;script&gt;alert(1)&lt;/script&gt;' in html
    assert '&lt;b&gt;Acme&lt;/b&gt;' in html
    # o texto puro continua sem escape
    assert '<script>alert(1)</script>' in mailoutbox[0].body
