"""
Models do FreelaOS: Ordens de Serviço, Clientes, Parceiros, Notificações e Log de E-mails.
"""
import json
import uuid
from django.core.exceptions import ValidationError
from django.db import models
from django.contrib.auth.hashers import make_password, check_password
from django.utils import timezone
from .utils import para_booleano


class StatusOS(models.TextChoices):
    """Status possíveis de uma Ordem de Serviço."""
    NA_FILA = 'na_fila', 'Na Fila'
    AGUARDANDO_CLIENTE = 'aguardando_cliente', 'Aguardando Cliente'
    EM_PRODUCAO = 'em_producao', 'Em Produção'
    AGUARDANDO_PARCEIRO = 'aguardando_parceiro', 'Aguardando Parceiro'
    AGUARDANDO_APROVACAO = 'aguardando_aprovacao', 'Aguardando Aprovação'
    RECUSADA = 'recusada', 'Recusada'
    FINALIZADO = 'finalizado', 'Finalizado'


class Parceiro(models.Model):
    """
    Parceiro externo: pode criar OS (que aguardam aprovação) ou ser o executor de uma OS.
    Parceiros criados só pelo nome (como executores) não têm senha e não fazem login.
    """
    nome = models.CharField(
        max_length=200,
        unique=True,
        verbose_name='Nome',
        help_text='Nome do parceiro (único)'
    )
    username = models.CharField(
        max_length=150,
        unique=True,
        verbose_name='Usuário',
        help_text='Login do parceiro'
    )
    password_hash = models.CharField(
        max_length=128,
        blank=True,
        null=True,
        verbose_name='Senha (hash)',
        help_text='Hash da senha. Vazio para parceiros sem acesso ao sistema'
    )
    email = models.EmailField(
        unique=True,
        blank=True,
        null=True,
        verbose_name='E-mail',
        help_text='E-mail do parceiro (usado para login e notificações)'
    )
    contato = models.CharField(
        max_length=200,
        blank=True,
        default='',
        verbose_name='Pessoa de Contato'
    )
    aprovado = models.BooleanField(
        default=False,
        verbose_name='Aprovado',
        help_text='Parceiros não aprovados não conseguem fazer login'
    )
    criado_em = models.DateTimeField(auto_now_add=True, verbose_name='Criado em')
    atualizado_em = models.DateTimeField(auto_now=True, verbose_name='Atualizado em')

    class Meta:
        verbose_name = 'Parceiro'
        verbose_name_plural = 'Parceiros'
        ordering = ['nome']

    def __str__(self):
        return self.nome

    @property
    def tem_login(self):
        return bool(self.password_hash)

    def definir_senha(self, senha):
        self.password_hash = make_password(senha)

    def verificar_senha(self, senha):
        if not self.password_hash:
            return False
        return check_password(senha, self.password_hash)


class Cliente(models.Model):
    """Cliente final das Ordens de Serviço. Criado automaticamente pelo nome."""
    nome = models.CharField(
        max_length=200,
        unique=True,
        verbose_name='Nome',
        help_text='Nome do cliente (único)'
    )
    parceiro_origem = models.ForeignKey(
        Parceiro,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='clientes_originados',
        verbose_name='Parceiro de Origem',
        help_text='Parceiro que trouxe este cliente (opcional)'
    )
    criado_em = models.DateTimeField(auto_now_add=True, verbose_name='Criado em')
    atualizado_em = models.DateTimeField(auto_now=True, verbose_name='Atualizado em')

    class Meta:
        verbose_name = 'Cliente'
        verbose_name_plural = 'Clientes'
        ordering = ['nome']

    def __str__(self):
        return self.nome


class OrdemServico(models.Model):
    """
    Ordem de Serviço (OS).

    O cronômetro de produção é controlado por três campos:
    - tempo_producao_segundos: total acumulado das sessões já encerradas
    - inicio_sessao_producao: início da sessão corrente (None = cronômetro parado)
    - data_inicio_producao: primeira vez que a OS entrou em produção (histórico)
    As regras de transição ficam em ordens.cronometro.
    """
    numero = models.CharField(
        max_length=6,
        unique=True,
        verbose_name='Número',
        help_text='Número sequencial da OS com 6 dígitos (ex: 000042)'
    )
    cliente = models.ForeignKey(
        Cliente,
        on_delete=models.PROTECT,
        related_name='ordens',
        verbose_name='Cliente'
    )
    parceiro = models.ForeignKey(
        Parceiro,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ordens_executadas',
        verbose_name='Parceiro Executor',
        help_text='Parceiro responsável pela execução (opcional)'
    )
    criado_por_parceiro = models.ForeignKey(
        Parceiro,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ordens_criadas',
        verbose_name='Criada pelo Parceiro',
        help_text='Parceiro que abriu a OS. Vazio quando criada por um administrador'
    )
    projeto = models.CharField(max_length=255, verbose_name='Projeto')
    tarefa = models.TextField(verbose_name='Tarefa')
    observacoes = models.TextField(blank=True, default='', verbose_name='Observações')
    checklist_json = models.TextField(
        blank=True,
        default='[]',
        verbose_name='Checklist',
        help_text='Itens do checklist em JSON: [{"id", "text", "completed"}]'
    )
    status = models.CharField(
        max_length=30,
        choices=StatusOS.choices,
        default=StatusOS.NA_FILA,
        verbose_name='Status',
        db_index=True
    )
    urgente = models.BooleanField(default=False, verbose_name='Urgente')

    data_abertura = models.DateTimeField(default=timezone.now, verbose_name='Data de Abertura')
    programado_para = models.DateField(
        null=True,
        blank=True,
        verbose_name='Programado para',
        help_text='Data agendada para execução (opcional)'
    )
    data_finalizacao = models.DateTimeField(null=True, blank=True, verbose_name='Data de Finalização')
    data_inicio_producao = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Início da Produção',
        help_text='Primeira vez que a OS entrou em produção'
    )
    tempo_producao_segundos = models.PositiveIntegerField(
        default=0,
        verbose_name='Tempo de Produção (s)',
        help_text='Tempo acumulado das sessões de produção encerradas'
    )
    inicio_sessao_producao = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Início da Sessão Atual',
        help_text='Preenchido enquanto o cronômetro está rodando'
    )
    atualizado_em = models.DateTimeField(auto_now=True, verbose_name='Atualizado em')

    class Meta:
        verbose_name = 'Ordem de Serviço'
        verbose_name_plural = 'Ordens de Serviço'
        ordering = ['-data_abertura']
        indexes = [
            models.Index(fields=['status', '-data_abertura'], name='ordens_os_status_idx'),
            models.Index(fields=['urgente', '-data_abertura'], name='ordens_os_urgente_idx'),
            models.Index(fields=['cliente', '-data_abertura'], name='ordens_os_cliente_idx'),
            models.Index(fields=['parceiro', '-data_abertura'], name='ordens_os_parceiro_idx'),
        ]

    def __str__(self):
        return f"OS #{self.numero} - {self.projeto}"

    @property
    def cronometro_ativo(self):
        return self.inicio_sessao_producao is not None

    @property
    def checklist(self):
        try:
            itens = json.loads(self.checklist_json or '[]')
        except ValueError:
            return []
        return itens if isinstance(itens, list) else []

    @checklist.setter
    def checklist(self, itens):
        self.checklist_json = json.dumps(normalizar_checklist(itens), ensure_ascii=False)


def normalizar_checklist(itens):
    """
    Normaliza os itens do checklist para o formato {id, text, completed}.
    Aceita strings soltas (viram itens não concluídos) e descarta itens sem texto.
    """
    if itens is None or itens == '':
        return []
    if not isinstance(itens, (list, tuple)):
        raise ValidationError('O checklist deve ser uma lista de itens.')
    normalizados = []
    for item in itens:
        if isinstance(item, str):
            item = {'text': item}
        if not isinstance(item, dict):
            continue
        texto = str(item.get('text') or '').strip()
        if not texto:
            continue
        normalizados.append({
            'id': str(item.get('id') or uuid.uuid4().hex[:12]),
            'text': texto,
            'completed': para_booleano(item.get('completed'), campo='completed'),
        })
    return normalizados


class Notificacao(models.Model):
    """
    Notificação in-app.
    Destinatário 'admin' sem parceiro = todos os administradores.
    """
    DESTINATARIO_CHOICES = [
        ('admin', 'Administradores'),
        ('parceiro', 'Parceiro'),
    ]

    TIPO_CHOICES = [
        ('os_criada_por_parceiro', 'OS Criada por Parceiro'),
        ('os_aprovada', 'OS Aprovada'),
        ('os_recusada', 'OS Recusada'),
        ('os_status_alterado', 'Status da OS Alterado'),
        ('generico', 'Genérico'),
    ]

    tipo_destinatario = models.CharField(
        max_length=20,
        choices=DESTINATARIO_CHOICES,
        verbose_name='Destinatário'
    )
    parceiro = models.ForeignKey(
        Parceiro,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notificacoes',
        verbose_name='Parceiro',
        help_text='Parceiro destinatário (vazio para todos os administradores)'
    )
    tipo = models.CharField(
        max_length=50,
        choices=TIPO_CHOICES,
        default='generico',
        verbose_name='Tipo de Notificação'
    )
    mensagem = models.TextField(verbose_name='Mensagem')
    link = models.CharField(max_length=300, blank=True, default='', verbose_name='Link')
    ordem_servico = models.ForeignKey(
        OrdemServico,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notificacoes',
        verbose_name='OS Relacionada'
    )
    lida = models.BooleanField(default=False, verbose_name='Lida')
    criado_em = models.DateTimeField(auto_now_add=True, verbose_name='Data de Criação')

    class Meta:
        verbose_name = 'Notificação'
        verbose_name_plural = 'Notificações'
        ordering = ['-criado_em']
        indexes = [
            models.Index(fields=['tipo_destinatario', 'parceiro', 'lida', '-criado_em'], name='ordens_notif_dest_idx'),
        ]

    def __str__(self):
        return f"[{self.get_tipo_display()}] {self.mensagem[:50]}"

    def marcar_como_lida(self):
        """Marca a notificação como lida."""
        self.lida = True
        self.save(update_fields=['lida'])


class EmailLog(models.Model):
    """
    Registro de todos os e-mails enviados pelo sistema.
    Permite rastrear quais e-mails foram enviados com sucesso e quais falharam.
    """

    TIPO_EMAIL_CHOICES = [
        ('os_aprovada', 'OS Aprovada'),
        ('os_recusada', 'OS Recusada'),
        ('os_status_alterado', 'Status Alterado'),
        ('os_criada_email', 'OS Criada via E-mail'),
    ]

    STATUS_CHOICES = [
        ('enviado', 'Enviado com Sucesso'),
        ('falhou', 'Falhou'),
        ('pendente', 'Pendente'),
    ]

    tipo_email = models.CharField(
        max_length=30,
        choices=TIPO_EMAIL_CHOICES,
        verbose_name='Tipo de Email',
        db_index=True
    )
    ordem_servico = models.ForeignKey(
        OrdemServico,
        on_delete=models.CASCADE,
        related_name='email_logs',
        verbose_name='OS',
        null=True,
        blank=True
    )
    destinatarios = models.TextField(
        verbose_name='Destinatários',
        help_text='Lista de emails destinatários (separados por vírgula)'
    )
    assunto = models.CharField(max_length=500, verbose_name='Assunto')
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='pendente',
        verbose_name='Status',
        db_index=True
    )
    mensagem_erro = models.TextField(
        blank=True,
        null=True,
        verbose_name='Mensagem de Erro',
        help_text='Detalhes do erro caso o envio tenha falhado'
    )
    tentativas = models.IntegerField(default=1, verbose_name='Tentativas')
    enviado_em = models.DateTimeField(null=True, blank=True, verbose_name='Enviado em')
    criado_em = models.DateTimeField(auto_now_add=True, verbose_name='Criado em', db_index=True)
    atualizado_em = models.DateTimeField(auto_now=True, verbose_name='Atualizado em')

    class Meta:
        verbose_name = 'Log de Email'
        verbose_name_plural = 'Logs de Email'
        ordering = ['-criado_em']
        indexes = [
            models.Index(fields=['-criado_em', 'status'], name='ordens_emaillog_status_idx'),
            models.Index(fields=['ordem_servico', 'tipo_email'], name='ordens_emaillog_os_tipo_idx'),
        ]

    def __str__(self):
        return f"[{self.get_status_display()}] {self.get_tipo_email_display()} - {self.assunto[:50]}"

    def marcar_como_enviado(self):
        """Marca o email como enviado com sucesso."""
        self.status = 'enviado'
        self.enviado_em = timezone.now()
        self.save(update_fields=['status', 'enviado_em', 'atualizado_em'])

    def marcar_como_falhou(self, erro):
        """Marca o email como falhou e registra o erro."""
        self.status = 'falhou'
        self.mensagem_erro = str(erro)[:1000]
        self.tentativas += 1
        self.save(update_fields=['status', 'mensagem_erro', 'tentativas', 'atualizado_em'])
