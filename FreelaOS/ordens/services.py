"""
Repositório das Ordens de Serviço, Clientes e Parceiros.

Toda operação que altera uma OS roda em transaction.atomic() e trava a linha
com select_for_update() antes de recalcular os campos do cronômetro.
Notificações e e-mails são disparados depois do commit.
"""
import logging
import time
import uuid
from datetime import date, datetime
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction, IntegrityError, DatabaseError
from django.db.models import Case, When, Value, IntegerField, Max, Q, Count
from django.db.models.functions import Cast
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from accounts.sessao import SessaoParceiro
from . import cronometro
from .models import OrdemServico, Cliente, Parceiro, StatusOS
from .notificacoes import notificar_mudanca_status, notificar_os_criada_por_parceiro
from .utils import para_booleano

logger = logging.getLogger(__name__)

# Colisões no número da OS (criações simultâneas) são resolvidas tentando de novo
TENTATIVAS_NUMERO = 5

SENHA_MINIMA = 6


def _queryset_os():
    return OrdemServico.objects.select_related('cliente', 'parceiro', 'criado_por_parceiro')


def _texto(valor):
    return str(valor or '').strip()


def _parse_data(valor):
    """Aceita date, 'YYYY-MM-DD' ou datetime ISO. Vazio = None."""
    if valor in (None, ''):
        return None
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor
    texto = _texto(valor)
    data = parse_date(texto[:10]) if len(texto) >= 10 else None
    if data is None:
        data_hora = parse_datetime(texto)
        data = data_hora.date() if data_hora else None
    if data is None:
        raise ValidationError(f'Data inválida: "{texto}". Use o formato AAAA-MM-DD.')
    return data


def _proximo_numero():
    """Maior número existente + 1, com 6 dígitos."""
    maior = OrdemServico.objects.aggregate(
        maior=Max(Cast('numero', IntegerField()))
    )['maior'] or 0
    return str(maior + 1).zfill(6)


def _nome_aprovador(aprovador):
    return getattr(aprovador, 'username', None) or 'Administrador'


# ---------------------------------------------------------------------------
# Clientes
# ---------------------------------------------------------------------------

def buscar_ou_criar_cliente(nome, parceiro_origem=None):
    """
    Retorna o cliente com este nome, criando-o se não existir.
    Se outra requisição criar o mesmo cliente ao mesmo tempo, relê o registro.
    """
    nome = _texto(nome)
    if not nome:
        raise ValidationError('O nome do cliente é obrigatório.')

    cliente = Cliente.objects.filter(nome__iexact=nome).first()
    if cliente:
        return cliente
    try:
        with transaction.atomic():
            cliente = Cliente.objects.create(nome=nome, parceiro_origem=parceiro_origem)
            logger.info(f"Cliente criado: {cliente.nome} (ID: {cliente.pk})")
            return cliente
    except IntegrityError:
        return Cliente.objects.get(nome__iexact=nome)


def listar_clientes():
    return Cliente.objects.select_related('parceiro_origem').annotate(
        total_os=Count('ordens')
    ).order_by('nome')


def atualizar_cliente(cliente_id, nome, parceiro_origem_id=None):
    """Renomeia o cliente. Retorna None se não existir."""
    nome = _texto(nome)
    if not nome:
        raise ValidationError('O nome do cliente é obrigatório.')

    with transaction.atomic():
        cliente = Cliente.objects.select_for_update().filter(pk=cliente_id).first()
        if cliente is None:
            return None
        if Cliente.objects.filter(nome__iexact=nome).exclude(pk=cliente.pk).exists():
            raise ValidationError(f'Já existe um cliente com o nome "{nome}".')
        cliente.nome = nome
        cliente.parceiro_origem_id = parceiro_origem_id
        cliente.save()
    logger.info(f"Cliente {cliente.pk} atualizado: {cliente.nome}")
    return cliente


def excluir_cliente(cliente_id):
    """
    Exclui o cliente. Recusa (ValidationError) se alguma OS estiver vinculada.
    Retorna False se o cliente não existir.
    """
    with transaction.atomic():
        cliente = Cliente.objects.select_for_update().filter(pk=cliente_id).first()
        if cliente is None:
            return False
        total = OrdemServico.objects.filter(cliente=cliente).count()
        if total:
            raise ValidationError(
                f'Não é possível excluir este cliente pois ele está vinculado a {total} '
                f'Ordem(ns) de Serviço. Desassocie-o das OSs primeiro.'
            )
        cliente.delete()
    logger.info(f"Cliente {cliente_id} excluído")
    return True


# ---------------------------------------------------------------------------
# Parceiros
# ---------------------------------------------------------------------------

def _username_provisorio():
    return f'parceiro_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}'


def buscar_ou_criar_parceiro(nome):
    """
    Retorna o parceiro com este nome. Se não existir, cria um parceiro sem login
    e não aprovado (apenas executor de OS).
    """
    nome = _texto(nome)
    if not nome:
        raise ValidationError('O nome do parceiro é obrigatório.')

    parceiro = Parceiro.objects.filter(nome__iexact=nome).first()
    if parceiro:
        return parceiro
    try:
        with transaction.atomic():
            parceiro = Parceiro.objects.create(nome=nome, username=_username_provisorio(), aprovado=False)
            logger.info(f"Parceiro criado sem login: {parceiro.nome} (ID: {parceiro.pk})")
            return parceiro
    except IntegrityError:
        return Parceiro.objects.get(nome__iexact=nome)


def listar_parceiros():
    return Parceiro.objects.order_by('nome')


def _validar_unicidade_parceiro(username, email, nome, excluir_id=None):
    outros = Parceiro.objects.all()
    sufixo = ''
    if excluir_id is not None:
        outros = outros.exclude(pk=excluir_id)
        sufixo = ' por outro parceiro'
    if outros.filter(username=username).exists():
        raise ValidationError(f'Este nome de usuário já está em uso{sufixo}.')
    if email and outros.filter(email__iexact=email).exists():
        raise ValidationError(f'Este email já está em uso{sufixo}.')
    if excluir_id is not None and outros.filter(nome__iexact=nome).exists():
        raise ValidationError(f'Já existe um parceiro com o nome "{nome}".')


def criar_parceiro(dados):
    """
    Cria um parceiro com acesso ao sistema (username + senha).
    Se já existir um parceiro sem login com o mesmo nome (criado como executor),
    as credenciais são adicionadas a ele.
    """
    nome = _texto(dados.get('nome'))
    username = _texto(dados.get('username'))
    email = _texto(dados.get('email')) or None
    senha = dados.get('senha') or ''

    if not nome or not username:
        raise ValidationError('Nome e usuário do parceiro são obrigatórios.')
    if not senha:
        raise ValidationError('Senha é obrigatória para criar um novo parceiro.')
    if len(senha) < SENHA_MINIMA:
        raise ValidationError(f'A senha deve ter pelo menos {SENHA_MINIMA} caracteres.')

    with transaction.atomic():
        existente = Parceiro.objects.select_for_update().filter(nome__iexact=nome).first()
        if existente and existente.tem_login:
            raise ValidationError(f'Já existe um parceiro com o nome "{nome}".')
        _validar_unicidade_parceiro(username, email, nome, excluir_id=existente.pk if existente else None)

        parceiro = existente or Parceiro(nome=nome)
        parceiro.username = username
        parceiro.email = email
        parceiro.contato = _texto(dados.get('contato'))
        parceiro.aprovado = para_booleano(dados.get('aprovado'), campo='aprovado')
        parceiro.definir_senha(senha)
        parceiro.save()

    logger.info(f"Parceiro {parceiro.nome} (ID: {parceiro.pk}) cadastrado com login {parceiro.username}")
    return parceiro


def atualizar_parceiro(parceiro_id, dados):
    """Atualiza os dados do parceiro; a senha só muda se for informada. Retorna None se não existir."""
    with transaction.atomic():
        parceiro = Parceiro.objects.select_for_update().filter(pk=parceiro_id).first()
        if parceiro is None:
            return None

        nome = _texto(dados.get('nome', parceiro.nome))
        username = _texto(dados.get('username', parceiro.username))
        email = _texto(dados.get('email', parceiro.email)) or None
        if not nome or not username:
            raise ValidationError('Nome e usuário do parceiro são obrigatórios.')
        _validar_unicidade_parceiro(username, email, nome, excluir_id=parceiro.pk)

        parceiro.nome = nome
        parceiro.username = username
        parceiro.email = email
        if 'contato' in dados:
            parceiro.contato = _texto(dados.get('contato'))
        if 'aprovado' in dados:
            parceiro.aprovado = para_booleano(dados.get('aprovado'), campo='aprovado')
        senha = dados.get('senha') or ''
        if senha.strip():
            if len(senha) < SENHA_MINIMA:
                raise ValidationError(f'A senha deve ter pelo menos {SENHA_MINIMA} caracteres.')
            parceiro.definir_senha(senha)
        parceiro.save()

    logger.info(f"Parceiro {parceiro.pk} atualizado")
    return parceiro


def excluir_parceiro(parceiro_id):
    """Exclui o parceiro. As OS vinculadas ficam sem parceiro (SET NULL)."""
    excluidos, _ = Parceiro.objects.filter(pk=parceiro_id).delete()
    if excluidos:
        logger.info(f"Parceiro {parceiro_id} excluído")
    return bool(excluidos)


# ---------------------------------------------------------------------------
# Ordens de Serviço
# ---------------------------------------------------------------------------

def _parceiro_criador(criador):
    """Resolve o parceiro que está criando a OS (None = administrador)."""
    if isinstance(criador, Parceiro):
        return criador
    if isinstance(criador, SessaoParceiro):
        parceiro = Parceiro.objects.filter(pk=criador.id).first()
        if parceiro is None:
            raise ValidationError('Parceiro da sessão não encontrado.')
        return parceiro
    return None


def criar_os(dados, criador=None):
    """
    Cria uma OS.

    - cliente, projeto e tarefa são obrigatórios; cliente e parceiro são resolvidos pelo nome
    - OS criada por parceiro sempre começa em AGUARDANDO_APROVACAO
    - OS criada já em produção/finalizada passa pelas regras de entrada do cronômetro
    """
    faltando = [campo for campo in ('cliente', 'projeto', 'tarefa') if not _texto(dados.get(campo))]
    if faltando:
        raise ValidationError(f'Campos obrigatórios não informados: {", ".join(faltando)}.')

    parceiro_criador = _parceiro_criador(criador)
    if parceiro_criador:
        status = StatusOS.AGUARDANDO_APROVACAO
    else:
        status = cronometro.normalizar_status(dados.get('status') or StatusOS.NA_FILA)
    programado_para = _parse_data(dados.get('programado_para'))
    urgente = para_booleano(dados.get('urgente'), campo='urgente')
    nome_parceiro = _texto(dados.get('parceiro'))

    for tentativa in range(1, TENTATIVAS_NUMERO + 1):
        try:
            with transaction.atomic():
                cliente = buscar_ou_criar_cliente(dados.get('cliente'), parceiro_origem=parceiro_criador)
                parceiro = buscar_ou_criar_parceiro(nome_parceiro) if nome_parceiro else None
                ordem = OrdemServico(
                    numero=_proximo_numero(),
                    cliente=cliente,
                    parceiro=parceiro,
                    criado_por_parceiro=parceiro_criador,
                    projeto=_texto(dados.get('projeto')),
                    tarefa=_texto(dados.get('tarefa')),
                    observacoes=_texto(dados.get('observacoes')),
                    status=status,
                    urgente=urgente,
                    programado_para=programado_para,
                )
                ordem.checklist = dados.get('checklist') or []
                cronometro.aplicar_estado_inicial(ordem, timezone.now())
                ordem.save()
            break
        except IntegrityError as e:
            if tentativa == TENTATIVAS_NUMERO:
                logger.error(f"Falha ao criar OS após {TENTATIVAS_NUMERO} tentativas: {e}")
                raise
            logger.warning(f"Colisão ao alocar número da OS (tentativa {tentativa}): {e}")

    origem = f"parceiro {parceiro_criador.nome}" if parceiro_criador else "administrador"
    logger.info(f"OS #{ordem.numero} criada por {origem} - status {ordem.status}")

    if parceiro_criador:
        notificar_os_criada_por_parceiro(ordem)
    return _queryset_os().get(pk=ordem.pk)


def atualizar_os(os_id, dados, agora=None):
    """
    Edita a OS (somente admin). Campos ausentes em `dados` não mudam.
    Se o status mudar, aplica as regras do cronômetro pela diferença entre o status salvo e o novo.
    Retorna None se a OS não existir ou se a transação falhar.
    """
    agora = agora or timezone.now()
    try:
        with transaction.atomic():
            ordem = OrdemServico.objects.select_for_update().filter(pk=os_id).first()
            if ordem is None:
                return None

            if 'cliente' in dados:
                ordem.cliente = buscar_ou_criar_cliente(dados['cliente'])
            if 'parceiro' in dados:
                nome_parceiro = _texto(dados['parceiro'])
                ordem.parceiro = buscar_ou_criar_parceiro(nome_parceiro) if nome_parceiro else None
            for campo in ('projeto', 'tarefa'):
                if campo in dados:
                    valor = _texto(dados[campo])
                    if not valor:
                        raise ValidationError(f'O campo {campo} é obrigatório.')
                    setattr(ordem, campo, valor)
            if 'observacoes' in dados:
                ordem.observacoes = _texto(dados['observacoes'])
            if 'urgente' in dados:
                ordem.urgente = para_booleano(dados['urgente'], campo='urgente')
            if 'programado_para' in dados:
                ordem.programado_para = _parse_data(dados['programado_para'])
            if 'checklist' in dados:
                ordem.checklist = dados['checklist']
            if dados.get('status'):
                cronometro.aplicar_transicao(ordem, dados['status'], agora)

            ordem.save()
    except DatabaseError as e:
        logger.error(f"Erro ao atualizar OS {os_id}: {e}", exc_info=True)
        return None

    logger.info(f"OS #{ordem.numero} atualizada")
    return _queryset_os().get(pk=os_id)


def listar_os(sessao=None):
    """
    Lista as OS: urgentes primeiro, depois aguardando aprovação, recusadas e as demais,
    e por fim as mais recentes. Parceiros veem apenas as OS que criaram ou executam.
    """
    prioridade_status = Case(
        When(status=StatusOS.AGUARDANDO_APROVACAO, then=Value(0)),
        When(status=StatusOS.RECUSADA, then=Value(1)),
        default=Value(2),
        output_field=IntegerField(),
    )
    qs = _queryset_os().annotate(prioridade_status=prioridade_status).order_by(
        '-urgente', 'prioridade_status', '-data_abertura', '-pk'
    )
    if isinstance(sessao, SessaoParceiro):
        qs = qs.filter(Q(criado_por_parceiro_id=sessao.id) | Q(parceiro_id=sessao.id))
    return qs


def obter_os(os_id, sessao=None):
    return listar_os(sessao).filter(pk=os_id).first()


def alterar_status(os_id, novo_status, aprovador=None, agora=None):
    """
    Muda o status da OS. Sem mudança = nada é salvo e nenhuma notificação sai.
    Dispara exatamente uma notificação (aprovação/recusa ou mudança geral) após o commit.
    Retorna None se a OS não existir.
    """
    novo_status = cronometro.normalizar_status(novo_status)
    agora = agora or timezone.now()

    with transaction.atomic():
        ordem = OrdemServico.objects.select_for_update().filter(pk=os_id).first()
        if ordem is None:
            return None
        status_anterior = ordem.status
        if (
            isinstance(aprovador, SessaoParceiro)
            and cronometro.categoria_notificacao(status_anterior, novo_status) == cronometro.CATEGORIA_APROVACAO
        ):
            raise ValidationError('Apenas administradores podem aprovar ou recusar uma OS.')
        if not cronometro.aplicar_transicao(ordem, novo_status, agora):
            return _queryset_os().get(pk=ordem.pk)
        ordem.save()

    ordem = _queryset_os().get(pk=os_id)
    logger.info(f"OS #{ordem.numero}: status {status_anterior} -> {ordem.status} por {_nome_aprovador(aprovador)}")
    notificar_mudanca_status(ordem, status_anterior, _nome_aprovador(aprovador))
    return ordem


def _alternar_cronometro(os_id, acao, agora):
    with transaction.atomic():
        ordem = OrdemServico.objects.select_for_update().filter(pk=os_id).first()
        if ordem is None:
            return None, False
        alterado = cronometro.aplicar_acao_cronometro(ordem, acao, agora)
        if alterado:
            ordem.save()
        else:
            logger.info(f"OS #{ordem.numero}: ação '{acao}' ignorada (status {ordem.status})")
    return _queryset_os().get(pk=os_id), alterado


def alternar_cronometro(os_id, acao, agora=None):
    """
    Inicia ou pausa o cronômetro de produção ('iniciar'/'pausar'; aceita 'start', 'play', 'pause').
    Ações incompatíveis com o estado atual são ignoradas. Retorna None se a OS não existir.
    """
    acao = cronometro.normalizar_acao(acao)
    ordem, _ = _alternar_cronometro(os_id, acao, agora or timezone.now())
    return ordem


def alternar_urgencia(os_id):
    with transaction.atomic():
        ordem = OrdemServico.objects.select_for_update().filter(pk=os_id).first()
        if ordem is None:
            return None
        ordem.urgente = not ordem.urgente
        ordem.save(update_fields=['urgente', 'atualizado_em'])
    return _queryset_os().get(pk=os_id)


def duplicar_os(os_id):
    """Cria uma nova OS (admin) copiando cliente, parceiro, tarefa e observações."""
    original = _queryset_os().filter(pk=os_id).first()
    if original is None:
        return None
    copia = criar_os({
        'cliente': original.cliente.nome,
        'parceiro': original.parceiro.nome if original.parceiro else '',
        'projeto': f'{original.projeto} (Cópia)',
        'tarefa': original.tarefa,
        'observacoes': original.observacoes,
        'status': StatusOS.NA_FILA,
        'urgente': False,
        'programado_para': None,
    })
    logger.info(f"OS #{original.numero} duplicada como OS #{copia.numero}")
    return copia


def pausar_cronometros_fora_do_expediente(agora=None):
    """
    Pausa todas as OS com cronômetro rodando se a hora local estiver fora do expediente.
    Pode ser chamada várias vezes sem efeito adicional.
    """
    agora = agora or timezone.now()
    hora = cronometro.hora_local(agora, settings.CRON_TIMEZONE)
    fora = cronometro.fora_do_expediente(hora, settings.EXPEDIENTE_INICIO, settings.EXPEDIENTE_FIM)
    resultado = {
        'fora_do_expediente': fora,
        'hora_local': hora,
        'verificado_em': agora.isoformat(),
        'pausadas': [],
    }
    if not fora:
        return resultado

    ativas = list(
        OrdemServico.objects.filter(
            status=StatusOS.EM_PRODUCAO,
            inicio_sessao_producao__isnull=False,
        ).values_list('pk', flat=True)
    )
    for os_id in ativas:
        try:
            ordem, alterado = _alternar_cronometro(os_id, cronometro.ACAO_PAUSAR, agora)
        except DatabaseError as e:
            logger.error(f"Erro ao pausar cronômetro da OS {os_id}: {e}", exc_info=True)
            continue
        if ordem is not None and alterado:
            resultado['pausadas'].append(os_id)

    logger.info(f"Fora do expediente ({hora}h): {len(resultado['pausadas'])} cronômetro(s) pausado(s)")
    return resultado
