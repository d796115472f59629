"""
URLs da API das Ordens de Serviço (DRF).
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'os', views.OrdemServicoViewSet, basename='os')
router.register(r'clientes', views.ClienteViewSet, basename='cliente')
router.register(r'parceiros', views.ParceiroViewSet, basename='parceiro')
router.register(r'notificacoes', views.NotificacaoViewSet, basename='notificacao')

urlpatterns = [
    path('', include(router.urls)),
    path('relatorios/tempo-producao/', views.relatorio_tempo_producao, name='relatorio-tempo-producao'),
    path('relatorios/por-entidade/', views.relatorio_por_entidade, name='relatorio-por-entidade'),
]
