from django.contrib import admin
from .models import OrdemServico, Cliente, Parceiro, Notificacao, EmailLog


@admin.register(OrdemServico)
class OrdemServicoAdmin(admin.ModelAdmin):
    """
    Configuração do admin para OrdemServico.
    Os campos do cronômetro são somente leitura: só mudam pelas ações da OS.
    """

    list_display = [
        'numero',
        'cliente',
        'projeto',
        'parceiro',
        'status',
        'urgente',
        'data_abertura',
        'programado_para',
    ]

    list_filter = [
        'status',
        'urgente',
        'data_abertura',
    ]

    search_fields = [
        'numero',
        'projeto',
        'tarefa',
        'cliente__nome',
        'parceiro__nome',
    ]

    fieldsets = (
        ('Informações Básicas', {
            'fields': ('numero', 'cliente', 'parceiro', 'criado_por_parceiro', 'projeto', 'tarefa', 'observacoes')
        }),
        ('Status', {
            'fields': ('status', 'urgente', 'programado_para', 'checklist_json')
        }),
        ('Produção', {
            'fields': ('data_inicio_producao', 'inicio_sessao_producao', 'tempo_producao_segundos', 'data_finalizacao'),
            'classes': ('collapse',)
        }),
        ('Datas', {
            'fields': ('data_abertura', 'atualizado_em'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = [
        'numero',
        'data_inicio_producao',
        'inicio_sessao_producao',
        'tempo_producao_segundos',
        'data_finalizacao',
        'data_abertura',
        'atualizado_em',
    ]

    list_select_related = ['cliente', 'parceiro']


@admin.register(Cliente)
class ClienteAdmin(admin.ModelAdmin):
    list_display = ['nome', 'parceiro_origem', 'criado_em']
    search_fields = ['nome']
    readonly_fields = ['criado_em', 'atualizado_em']


@admin.register(Parceiro)
class ParceiroAdmin(admin.ModelAdmin):
    list_display = ['nome', 'username', 'email', 'aprovado', 'criado_em']
    list_filter = ['aprovado']
    search_fields = ['nome', 'username', 'email']
    exclude = ['password_hash']
    readonly_fields = ['criado_em', 'atualizado_em']


@admin.register(Notificacao)
class NotificacaoAdmin(admin.ModelAdmin):
    list_display = ['tipo', 'tipo_destinatario', 'parceiro', 'ordem_servico', 'lida', 'criado_em']
    list_filter = ['tipo', 'tipo_destinatario', 'lida']
    search_fields = ['mensagem']
    date_hierarchy = 'criado_em'


@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    """
    Configuração do admin para EmailLog.
    Permite visualizar os envios de e-mail e as falhas.
    """

    list_display = [
        'status',
        'tipo_email',
        'assunto',
        'destinatarios',
        'ordem_servico',
        'tentativas',
        'criado_em',
        'enviado_em',
    ]

    list_filter = ['status', 'tipo_email', 'criado_em']
    search_fields = ['assunto', 'destinatarios', 'ordem_servico__numero']
    readonly_fields = [
        'tipo_email',
        'ordem_servico',
        'destinatarios',
        'assunto',
        'status',
        'mensagem_erro',
        'tentativas',
        'enviado_em',
        'criado_em',
        'atualizado_em',
    ]

    def has_add_permission(self, request):
        return False
