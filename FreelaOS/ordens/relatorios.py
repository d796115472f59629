"""
Relatórios das Ordens de Serviço.

- Tempo de produção: OS finalizadas com o tempo acumulado no cronômetro
- Por entidade: OS filtradas por cliente, parceiro, status e busca livre
"""
from django.core.exceptions import ValidationError
from django.db.models import Q
from .models import OrdemServico, StatusOS
from .cronometro import normalizar_status
from .utils import para_id

ORDENACAO_TEMPO_PRODUCAO = {
    'data_finalizacao': 'data_finalizacao',
    'tempo': 'tempo_producao_segundos',
    'tempo_producao_segundos': 'tempo_producao_segundos',
    'numero': 'numero',
    'cliente': 'cliente__nome',
    'projeto': 'projeto',
}

ORDENACAO_POR_ENTIDADE = {
    'data_abertura': 'data_abertura',
    'programado_para': 'programado_para',
    'data_finalizacao': 'data_finalizacao',
    'numero': 'numero',
    'cliente': 'cliente__nome',
    'projeto': 'projeto',
    'status': 'status',
}

# 'active' = em andamento (exclui finalizadas, recusadas e aguardando aprovação)
STATUS_INATIVOS = (StatusOS.FINALIZADO, StatusOS.RECUSADA, StatusOS.AGUARDANDO_APROVACAO)


def formatar_duracao(segundos):
    """Formata segundos como '2h 5m 10s'. Valores ausentes ou negativos viram 'N/D'."""
    if segundos is None or segundos < 0:
        return 'N/D'
    segundos = int(segundos)
    if segundos == 0:
        return '0s'
    horas, resto = divmod(segundos, 3600)
    minutos, segs = divmod(resto, 60)
    partes = []
    if horas:
        partes.append(f'{horas}h')
    if minutos:
        partes.append(f'{minutos}m')
    if segs or not partes:
        partes.append(f'{segs}s')
    return ' '.join(partes)


def _ordenacao(campos, ordenar_por, direcao):
    campo = campos.get(ordenar_por)
    if campo is None:
        raise ValidationError(
            f'Ordenação inválida: "{ordenar_por}". Opções: {", ".join(sorted(campos))}.'
        )
    if direcao not in ('asc', 'desc'):
        raise ValidationError('Direção de ordenação inválida. Use "asc" ou "desc".')
    prefixo = '-' if direcao == 'desc' else ''
    return [f'{prefixo}{campo}', f'{prefixo}pk']


def _linha(ordem):
    return {
        'id': ordem.pk,
        'numero': ordem.numero,
        'cliente': ordem.cliente.nome,
        'parceiro': ordem.parceiro.nome if ordem.parceiro else None,
        'projeto': ordem.projeto,
        'status': ordem.status,
        'status_display': ordem.get_status_display(),
        'urgente': ordem.urgente,
        'data_abertura': ordem.data_abertura.isoformat() if ordem.data_abertura else None,
        'programado_para': ordem.programado_para.isoformat() if ordem.programado_para else None,
        'data_finalizacao': ordem.data_finalizacao.isoformat() if ordem.data_finalizacao else None,
        'tempo_producao_segundos': ordem.tempo_producao_segundos,
        'tempo_producao_formatado': formatar_duracao(ordem.tempo_producao_segundos),
    }


def relatorio_tempo_producao(ordenar_por='data_finalizacao', direcao='desc'):
    """OS finalizadas com o tempo de produção, total e média."""
    ordens = (
        OrdemServico.objects
        .select_related('cliente', 'parceiro')
        .filter(status=StatusOS.FINALIZADO)
        .order_by(*_ordenacao(ORDENACAO_TEMPO_PRODUCAO, ordenar_por, direcao))
    )
    linhas = [_linha(ordem) for ordem in ordens]
    total = sum(linha['tempo_producao_segundos'] for linha in linhas)
    media = total // len(linhas) if linhas else 0
    return {
        'ordens': linhas,
        'total_ordens': len(linhas),
        'tempo_total_segundos': total,
        'tempo_total_formatado': formatar_duracao(total),
        'tempo_medio_segundos': media,
        'tempo_medio_formatado': formatar_duracao(media),
    }


def relatorio_por_entidade(cliente_id=None, parceiro_id=None, status='all', busca='',
                           ordenar_por='data_abertura', direcao='desc'):
    """
    OS filtradas por cliente e/ou parceiro executor.

    status: 'all' (todas), 'active' (em andamento), 'completed' (finalizadas)
    ou um status específico. busca procura no número e no projeto.
    """
    cliente_id = para_id(cliente_id, 'ID de cliente inválido.')
    parceiro_id = para_id(parceiro_id, 'ID de parceiro inválido.')
    ordens = OrdemServico.objects.select_related('cliente', 'parceiro')
    if cliente_id:
        ordens = ordens.filter(cliente_id=cliente_id)
    if parceiro_id:
        ordens = ordens.filter(parceiro_id=parceiro_id)

    status = status or 'all'
    if status == 'active':
        ordens = ordens.exclude(status__in=STATUS_INATIVOS)
    elif status == 'completed':
        ordens = ordens.filter(status=StatusOS.FINALIZADO)
    elif status != 'all':
        ordens = ordens.filter(status=normalizar_status(status))

    busca = (busca or '').strip()
    if busca:
        ordens = ordens.filter(Q(numero__icontains=busca) | Q(projeto__icontains=busca))

    ordens = ordens.order_by(*_ordenacao(ORDENACAO_POR_ENTIDADE, ordenar_por, direcao))
    linhas = [_linha(ordem) for ordem in ordens]
    return {
        'ordens': linhas,
        'total_ordens': len(linhas),
    }
