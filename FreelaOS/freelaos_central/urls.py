"""
URL configuration do FreelaOS.

Estrutura de URLs:
  /api/auth/              -> Login, registro, logout e aprovação de usuários (namespace: accounts)
  /api/session/           -> Sessão atual decodificada
  /api/                   -> OS, clientes, parceiros, notificações e relatórios
  /api/email-ingest/      -> Webhook de criação de OS por e-mail
  /api/cron/pause-timers/ -> Pausa automática dos cronômetros
  /dashboard/             -> Resumo do administrador
  /parceiro/dashboard/    -> Resumo do parceiro
  /health/                -> Verificação do banco
  /admin/                 -> Django Admin
"""
from django.contrib import admin
from django.urls import path, include

from accounts.views import sessao_atual
from ordens import views as ordens_views
from ordens import views_webhook

urlpatterns = [
    path('admin/', admin.site.urls),

    # === Autenticação ===
    path('api/auth/', include('accounts.urls')),
    path('api/session/', sessao_atual, name='sessao-atual'),

    # === Endpoints externos ===
    path('api/email-ingest/', views_webhook.email_ingest, name='email-ingest'),
    path('api/cron/pause-timers/', views_webhook.pausar_cronometros, name='cron-pause-timers'),
    path('health/', views_webhook.health, name='health'),

    # === API das OS ===
    path('api/', include('ordens.urls')),

    # === Painéis ===
    path('dashboard/', ordens_views.dashboard, name='dashboard'),
    path('parceiro/dashboard/', ordens_views.dashboard_parceiro, name='dashboard-parceiro'),
]
