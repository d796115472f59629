"""
ViewSets DRF do FreelaOS.

As regras de negócio ficam em ordens.services; as views só traduzem:
None -> 404, ValidationError -> 400.
"""
from django.core.exceptions import ValidationError
from django.db.models import Count
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, status, filters
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.response import Response

from accounts.permissions import IsAdminSessao, IsAdminOuLeitura, SessaoAprovada
from accounts.sessao import obter_sessao, SessaoParceiro
from . import services, relatorios
from .models import StatusOS
from .notificacoes import notificacoes_da_sessao
from .serializers import (
    OrdemServicoSerializer,
    ClienteSerializer,
    ParceiroSerializer,
    NotificacaoSerializer,
)


def _erro_validacao(e):
    return Response({'error': ' '.join(e.messages)}, status=status.HTTP_400_BAD_REQUEST)


def _nao_encontrado(mensagem='OS não encontrada.'):
    return Response({'error': mensagem}, status=status.HTTP_404_NOT_FOUND)


class OrdemServicoViewSet(viewsets.GenericViewSet):
    """
    ViewSet para Ordens de Serviço.

    Parceiros só enxergam as OS que criaram ou executam e só podem criar
    (a OS entra aguardando aprovação). Demais escritas são de administradores.
    """
    serializer_class = OrdemServicoSerializer
    permission_classes = [IsAdminOuLeitura]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['status', 'urgente', 'cliente', 'parceiro']
    search_fields = ['numero', 'projeto', 'tarefa', 'cliente__nome']

    def get_queryset(self):
        return services.listar_os(self.request.user)

    def list(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        return Response(self.get_serializer(queryset, many=True).data)

    def create(self, request):
        try:
            ordem = services.criar_os(request.data, criador=request.user)
        except ValidationError as e:
            return _erro_validacao(e)
        return Response(self.get_serializer(ordem).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        ordem = services.obter_os(pk, request.user)
        if ordem is None:
            return _nao_encontrado()
        return Response(self.get_serializer(ordem).data)

    def update(self, request, pk=None):
        try:
            ordem = services.atualizar_os(pk, request.data)
        except ValidationError as e:
            return _erro_validacao(e)
        if ordem is None:
            return _nao_encontrado()
        return Response(self.get_serializer(ordem).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    @action(detail=True, methods=['post'])
    def status(self, request, pk=None):
        """Muda o status (aprovação, recusa, finalização, reabertura...)."""
        novo_status = request.data.get('status')
        if not novo_status:
            return Response({'error': 'Informe o novo status.'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            ordem = services.alterar_status(pk, novo_status, aprovador=request.user)
        except ValidationError as e:
            return _erro_validacao(e)
        if ordem is None:
            return _nao_encontrado()
        return Response(self.get_serializer(ordem).data)

    @action(detail=True, methods=['post'])
    def cronometro(self, request, pk=None):
        """Inicia ou pausa o cronômetro: {"acao": "iniciar" | "pausar"}."""
        try:
            ordem = services.alternar_cronometro(pk, request.data.get('acao'))
        except ValidationError as e:
            return _erro_validacao(e)
        if ordem is None:
            return _nao_encontrado()
        return Response(self.get_serializer(ordem).data)

    @action(detail=True, methods=['post'])
    def urgencia(self, request, pk=None):
        ordem = services.alternar_urgencia(pk)
        if ordem is None:
            return _nao_encontrado()
        return Response(self.get_serializer(ordem).data)

    @action(detail=True, methods=['post'])
    def duplicar(self, request, pk=None):
        try:
            copia = services.duplicar_os(pk)
        except ValidationError as e:
            return _erro_validacao(e)
        if copia is None:
            return _nao_encontrado()
        return Response(self.get_serializer(copia).data, status=status.HTTP_201_CREATED)


class ClienteViewSet(viewsets.GenericViewSet):
    """ViewSet para Clientes (somente administradores)."""
    serializer_class = ClienteSerializer
    permission_classes = [IsAdminSessao]
    filter_backends = [filters.SearchFilter]
    search_fields = ['nome']

    def get_queryset(self):
        return services.listar_clientes()

    def list(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        return Response(self.get_serializer(queryset, many=True).data)

    def create(self, request):
        try:
            cliente = services.buscar_ou_criar_cliente(request.data.get('nome'))
        except ValidationError as e:
            return _erro_validacao(e)
        return Response(self.get_serializer(cliente).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        try:
            cliente = services.atualizar_cliente(
                pk,
                request.data.get('nome'),
                request.data.get('parceiro_origem') or None,
            )
        except ValidationError as e:
            return _erro_validacao(e)
        if cliente is None:
            return _nao_encontrado('Cliente não encontrado.')
        return Response(self.get_serializer(cliente).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        try:
            excluido = services.excluir_cliente(pk)
        except ValidationError as e:
            return _erro_validacao(e)
        if not excluido:
            return _nao_encontrado('Cliente não encontrado.')
        return Response(status=status.HTTP_204_NO_CONTENT)


class ParceiroViewSet(viewsets.GenericViewSet):
    """ViewSet para Parceiros (somente administradores)."""
    serializer_class = ParceiroSerializer
    permission_classes = [IsAdminSessao]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['aprovado']
    search_fields = ['nome', 'username', 'email']

    def get_queryset(self):
        return services.listar_parceiros()

    def list(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        return Response(self.get_serializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        parceiro = self.get_queryset().filter(pk=pk).first()
        if parceiro is None:
            return _nao_encontrado('Parceiro não encontrado.')
        return Response(self.get_serializer(parceiro).data)

    def create(self, request):
        try:
            parceiro = services.criar_parceiro(request.data)
        except ValidationError as e:
            return _erro_validacao(e)
        return Response(self.get_serializer(parceiro).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        try:
            parceiro = services.atualizar_parceiro(pk, request.data)
        except ValidationError as e:
            return _erro_validacao(e)
        if parceiro is None:
            return _nao_encontrado('Parceiro não encontrado.')
        return Response(self.get_serializer(parceiro).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        if not services.excluir_parceiro(pk):
            return _nao_encontrado('Parceiro não encontrado.')
        return Response(status=status.HTTP_204_NO_CONTENT)


class NotificacaoViewSet(viewsets.GenericViewSet):
    """Notificações da sessão atual."""
    serializer_class = NotificacaoSerializer
    permission_classes = [SessaoAprovada]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['lida', 'tipo']

    def get_queryset(self):
        return notificacoes_da_sessao(self.request.user).select_related('ordem_servico')

    def list(self, request):
        queryset = self.filter_queryset(self.get_queryset())[:50]
        return Response(self.get_serializer(queryset, many=True).data)

    @action(detail=True, methods=['post'], url_path='marcar-lida')
    def marcar_lida(self, request, pk=None):
        notificacao = self.get_queryset().filter(pk=pk).first()
        if notificacao is None:
            return _nao_encontrado('Notificação não encontrada.')
        notificacao.marcar_como_lida()
        return Response(self.get_serializer(notificacao).data)

    @action(detail=False, methods=['post'], url_path='marcar-todas-lidas')
    def marcar_todas_lidas(self, request):
        total = notificacoes_da_sessao(request.user).filter(lida=False).update(lida=True)
        return Response({'marcadas': total})

    @action(detail=False, methods=['get'], url_path='nao-lidas')
    def nao_lidas(self, request):
        return Response({'count': notificacoes_da_sessao(request.user).filter(lida=False).count()})


@api_view(['GET'])
@permission_classes([IsAdminSessao])
def relatorio_tempo_producao(request):
    try:
        dados = relatorios.relatorio_tempo_producao(
            ordenar_por=request.query_params.get('ordenar_por', 'data_finalizacao'),
            direcao=request.query_params.get('direcao', 'desc'),
        )
    except ValidationError as e:
        return _erro_validacao(e)
    return Response(dados)


@api_view(['GET'])
@permission_classes([IsAdminSessao])
def relatorio_por_entidade(request):
    params = request.query_params
    try:
        dados = relatorios.relatorio_por_entidade(
            cliente_id=params.get('cliente') or None,
            parceiro_id=params.get('parceiro') or None,
            status=params.get('status', 'all'),
            busca=params.get('busca', ''),
            ordenar_por=params.get('ordenar_por', 'data_abertura'),
            direcao=params.get('direcao', 'desc'),
        )
    except ValidationError as e:
        return _erro_validacao(e)
    return Response(dados)


def _resumo(ordens):
    por_status = dict(ordens.values_list('status').annotate(total=Count('id')).order_by())
    return {
        'total': sum(por_status.values()),
        'urgentes': ordens.filter(urgente=True).count(),
        'cronometros_ativos': ordens.filter(inicio_sessao_producao__isnull=False).count(),
        'por_status': {valor: por_status.get(valor, 0) for valor in StatusOS.values},
    }


@require_http_methods(["GET"])
def dashboard(request):
    """Resumo das OS para o painel do administrador (sessão garantida pelo middleware)."""
    sessao = obter_sessao(request)
    return JsonResponse({
        'sessao': sessao.as_dict(),
        'resumo': _resumo(services.listar_os(sessao)),
        'notificacoes_nao_lidas': notificacoes_da_sessao(sessao).filter(lida=False).count(),
    })


@require_http_methods(["GET"])
def dashboard_parceiro(request):
    sessao = obter_sessao(request)
    if not isinstance(sessao, SessaoParceiro):
        return JsonResponse({'error': 'Acesso restrito a parceiros.'}, status=403)
    return JsonResponse({
        'sessao': sessao.as_dict(),
        'resumo': _resumo(services.listar_os(sessao)),
        'notificacoes_nao_lidas': notificacoes_da_sessao(sessao).filter(lida=False).count(),
    })
