"""
Notificações disparadas pelas mudanças nas Ordens de Serviço (in-app + e-mail).

Devem ser chamadas depois do commit da transação. Qualquer falha aqui é
registrada no log e não desfaz a operação que originou a notificação.
"""
import logging
from . import email_utils
from .cronometro import categoria_notificacao, CATEGORIA_APROVACAO
from .models import Notificacao, StatusOS

logger = logging.getLogger(__name__)


def _link_os(ordem):
    return f'/os/{ordem.pk}/'


def _criar_notificacao(tipo, mensagem, ordem=None, parceiro=None):
    """Parceiro None = notificação para todos os administradores."""
    return Notificacao.objects.create(
        tipo_destinatario='parceiro' if parceiro else 'admin',
        parceiro=parceiro,
        tipo=tipo,
        mensagem=mensagem,
        link=_link_os(ordem) if ordem else '',
        ordem_servico=ordem,
    )


def notificar_os_criada_por_parceiro(ordem):
    try:
        nome = ordem.criado_por_parceiro.nome if ordem.criado_por_parceiro else 'Parceiro'
        _criar_notificacao(
            'os_criada_por_parceiro',
            f'{nome} criou a OS #{ordem.numero} ("{ordem.projeto}") e ela aguarda aprovação.',
            ordem,
        )
    except Exception as e:
        logger.error(f"Erro ao notificar criação da OS #{ordem.numero}: {e}", exc_info=True)


def notificar_mudanca_status(ordem, status_anterior, aprovador_nome='Administrador'):
    """
    Dispara exatamente uma notificação por mudança de status:
    a de aprovação/recusa (OS enviada por parceiro) ou a de mudança geral.
    Retorna a categoria usada.
    """
    categoria = categoria_notificacao(status_anterior, ordem.status)
    try:
        if categoria == CATEGORIA_APROVACAO:
            aprovada = ordem.status == StatusOS.NA_FILA
            resultado = 'aprovada' if aprovada else 'recusada'
            _criar_notificacao(
                'os_aprovada' if aprovada else 'os_recusada',
                f'A OS #{ordem.numero} ("{ordem.projeto}") foi {resultado} por {aprovador_nome}.',
                ordem,
                parceiro=ordem.criado_por_parceiro,
            )
            email_utils.enviar_email_aprovacao(ordem, aprovada, aprovador_nome)
        else:
            anterior = StatusOS(status_anterior).label
            _criar_notificacao(
                'os_status_alterado',
                f'A OS #{ordem.numero} mudou de "{anterior}" para "{ordem.get_status_display()}".',
                ordem,
                parceiro=ordem.criado_por_parceiro or ordem.parceiro,
            )
            email_utils.enviar_email_mudanca_status(ordem, anterior)
    except Exception as e:
        logger.error(f"Erro ao notificar mudança de status da OS #{ordem.numero}: {e}", exc_info=True)
    return categoria


def notificacoes_da_sessao(sessao):
    """Notificações visíveis para a sessão (admin vê as de administradores, parceiro as suas)."""
    from accounts.sessao import SessaoParceiro

    if isinstance(sessao, SessaoParceiro):
        return Notificacao.objects.filter(tipo_destinatario='parceiro', parceiro_id=sessao.id)
    return Notificacao.objects.filter(tipo_destinatario='admin')
