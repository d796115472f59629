"""
Máquina de estados da OS e cronômetro de produção.

Funções puras sobre a instância de OrdemServico: não salvam nada e recebem o
instante atual (agora) por parâmetro, então podem ser testadas sem banco.

Regras aplicadas sempre que o status muda:
  1. Entrando em EM_PRODUCAO: inicia a sessão (se não houver) e registra o
     primeiro início de produção (se ainda não registrado).
  2. Saindo de EM_PRODUCAO: soma a sessão corrente ao acumulado e zera o início.
  3. Entrando em FINALIZADO: registra a data de finalização (se vazia).
  4. Saindo de FINALIZADO: limpa a data de finalização (reabertura).
"""
from zoneinfo import ZoneInfo
from django.core.exceptions import ValidationError
from .models import StatusOS

# Status em que o cronômetro não pode ser iniciado
STATUS_SEM_CRONOMETRO = (
    StatusOS.FINALIZADO,
    StatusOS.AGUARDANDO_APROVACAO,
    StatusOS.RECUSADA,
)

ACAO_INICIAR = 'iniciar'
ACAO_PAUSAR = 'pausar'
_ALIASES_ACAO = {
    'iniciar': ACAO_INICIAR,
    'start': ACAO_INICIAR,
    'play': ACAO_INICIAR,
    'pausar': ACAO_PAUSAR,
    'pause': ACAO_PAUSAR,
}

CATEGORIA_APROVACAO = 'aprovacao'
CATEGORIA_GERAL = 'geral'


def normalizar_status(valor):
    """
    Converte o valor recebido (slug ou rótulo, ex: 'em_producao' ou 'Em Produção')
    para o valor de StatusOS. Levanta ValidationError para status desconhecido.
    """
    if isinstance(valor, StatusOS):
        return valor
    texto = str(valor or '').strip()
    for status in StatusOS:
        if texto == status.value or texto.lower() == status.label.lower():
            return status
    raise ValidationError(f'Status inválido: "{texto}".')


def normalizar_acao(acao):
    chave = str(acao or '').strip().lower()
    if chave not in _ALIASES_ACAO:
        raise ValidationError(f'Ação de cronômetro inválida: "{acao}". Use "iniciar" ou "pausar".')
    return _ALIASES_ACAO[chave]


def segundos_decorridos(inicio, agora):
    """Segundos inteiros entre inicio e agora (nunca negativo)."""
    return max(0, int((agora - inicio).total_seconds()))


def encerrar_sessao(ordem, agora):
    """Soma a sessão corrente ao acumulado. Retorna os segundos somados."""
    if ordem.inicio_sessao_producao is None:
        return 0
    decorrido = segundos_decorridos(ordem.inicio_sessao_producao, agora)
    ordem.tempo_producao_segundos = (ordem.tempo_producao_segundos or 0) + decorrido
    ordem.inicio_sessao_producao = None
    return decorrido


def _aplicar_entrada(ordem, agora):
    if ordem.status == StatusOS.EM_PRODUCAO:
        if ordem.inicio_sessao_producao is None:
            ordem.inicio_sessao_producao = agora
        if ordem.data_inicio_producao is None:
            ordem.data_inicio_producao = agora
    elif ordem.status == StatusOS.FINALIZADO and ordem.data_finalizacao is None:
        ordem.data_finalizacao = agora


def aplicar_estado_inicial(ordem, agora):
    """Aplica as regras de entrada para uma OS recém-criada (ex: criada já em produção)."""
    ordem.status = normalizar_status(ordem.status)
    _aplicar_entrada(ordem, agora)
    return ordem


def aplicar_transicao(ordem, novo_status, agora):
    """
    Muda o status aplicando os efeitos no cronômetro e na finalização.
    Retorna False (sem alterar nada) quando o status pedido é igual ao atual.
    """
    novo_status = normalizar_status(novo_status)
    anterior = ordem.status
    if novo_status == anterior:
        return False

    if novo_status != StatusOS.EM_PRODUCAO:
        encerrar_sessao(ordem, agora)
    if anterior == StatusOS.FINALIZADO:
        ordem.data_finalizacao = None

    ordem.status = novo_status
    _aplicar_entrada(ordem, agora)
    return True


def iniciar_cronometro(ordem, agora):
    """
    Inicia o cronômetro e coloca a OS em produção.
    Ignorado se já estiver rodando ou se a OS estiver finalizada, recusada ou aguardando aprovação.
    """
    if ordem.inicio_sessao_producao is not None or ordem.status in STATUS_SEM_CRONOMETRO:
        return False
    ordem.inicio_sessao_producao = agora
    if ordem.data_inicio_producao is None:
        ordem.data_inicio_producao = agora
    ordem.status = StatusOS.EM_PRODUCAO
    return True


def pausar_cronometro(ordem, agora):
    """
    Pausa o cronômetro. Ignorado se não estiver rodando.
    A OS volta para a fila somente se estava em produção.
    """
    if ordem.inicio_sessao_producao is None:
        return False
    encerrar_sessao(ordem, agora)
    if ordem.status == StatusOS.EM_PRODUCAO:
        ordem.status = StatusOS.NA_FILA
    return True


def aplicar_acao_cronometro(ordem, acao, agora):
    if normalizar_acao(acao) == ACAO_INICIAR:
        return iniciar_cronometro(ordem, agora)
    return pausar_cronometro(ordem, agora)


def tempo_total_segundos(ordem, agora):
    """Tempo acumulado mais a sessão em andamento."""
    total = ordem.tempo_producao_segundos or 0
    if ordem.inicio_sessao_producao is not None:
        total += segundos_decorridos(ordem.inicio_sessao_producao, agora)
    return total


def categoria_notificacao(status_anterior, novo_status):
    """
    Aprovação/recusa de OS enviada por parceiro usa a notificação de aprovação;
    qualquer outra mudança usa a notificação geral.
    """
    if status_anterior == StatusOS.AGUARDANDO_APROVACAO and novo_status in (StatusOS.NA_FILA, StatusOS.RECUSADA):
        return CATEGORIA_APROVACAO
    return CATEGORIA_GERAL


def hora_local(agora, fuso='America/Sao_Paulo'):
    return agora.astimezone(ZoneInfo(fuso)).hour


def fora_do_expediente(hora, inicio=8, fim=23):
    """Fora do expediente: antes de `inicio` ou a partir de `fim` (hora local)."""
    return hora < inicio or hora >= fim
