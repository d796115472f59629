"""
Serializers DRF do FreelaOS.

As escritas passam por ordens.services; estes serializers só formatam a saída.
"""
from django.utils import timezone
from rest_framework import serializers
from .models import OrdemServico, Cliente, Parceiro, Notificacao
from .cronometro import tempo_total_segundos


class OrdemServicoSerializer(serializers.ModelSerializer):
    """Serializer para OrdemServico."""
    cliente = serializers.CharField(source='cliente.nome', read_only=True)
    parceiro = serializers.SerializerMethodField()
    criado_por_parceiro = serializers.SerializerMethodField()
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    checklist = serializers.ListField(read_only=True)
    cronometro_ativo = serializers.BooleanField(read_only=True)
    tempo_total_segundos = serializers.SerializerMethodField()

    class Meta:
        model = OrdemServico
        fields = [
            'id', 'numero', 'cliente', 'cliente_id', 'parceiro', 'parceiro_id',
            'criado_por_parceiro', 'criado_por_parceiro_id', 'projeto', 'tarefa',
            'observacoes', 'checklist', 'status', 'status_display', 'urgente',
            'data_abertura', 'programado_para', 'data_finalizacao',
            'data_inicio_producao', 'tempo_producao_segundos', 'inicio_sessao_producao',
            'cronometro_ativo', 'tempo_total_segundos', 'atualizado_em',
        ]
        read_only_fields = fields

    def get_parceiro(self, obj):
        return obj.parceiro.nome if obj.parceiro else None

    def get_criado_por_parceiro(self, obj):
        return obj.criado_por_parceiro.nome if obj.criado_por_parceiro else None

    def get_tempo_total_segundos(self, obj):
        """Acumulado + sessão em andamento."""
        return tempo_total_segundos(obj, timezone.now())


class ClienteSerializer(serializers.ModelSerializer):
    """Serializer para Cliente."""
    parceiro_origem_nome = serializers.SerializerMethodField()
    total_os = serializers.SerializerMethodField()

    class Meta:
        model = Cliente
        fields = ['id', 'nome', 'parceiro_origem', 'parceiro_origem_nome', 'total_os', 'criado_em']
        read_only_fields = fields

    def get_parceiro_origem_nome(self, obj):
        return obj.parceiro_origem.nome if obj.parceiro_origem else None

    def get_total_os(self, obj):
        total = getattr(obj, 'total_os', None)
        if total is None:
            total = obj.ordens.count()
        return total


class ParceiroSerializer(serializers.ModelSerializer):
    """Serializer para Parceiro. O hash da senha nunca é exposto."""
    tem_login = serializers.BooleanField(read_only=True)

    class Meta:
        model = Parceiro
        fields = ['id', 'nome', 'username', 'email', 'contato', 'aprovado', 'tem_login', 'criado_em']
        read_only_fields = fields


class NotificacaoSerializer(serializers.ModelSerializer):
    tipo_display = serializers.CharField(source='get_tipo_display', read_only=True)
    ordem_numero = serializers.SerializerMethodField()

    class Meta:
        model = Notificacao
        fields = [
            'id', 'tipo', 'tipo_display', 'tipo_destinatario', 'mensagem', 'link',
            'ordem_servico', 'ordem_numero', 'lida', 'criado_em',
        ]
        read_only_fields = fields

    def get_ordem_numero(self, obj):
        return obj.ordem_servico.numero if obj.ordem_servico else None
