from django.urls import path
from . import views

app_name = 'accounts'

urlpatterns = [
    path('login/', views.login, name='login'),
    path('login-parceiro/', views.login_parceiro, name='login-parceiro'),
    path('registro/', views.registro, name='registro'),
    path('logout/', views.logout, name='logout'),
    path('alterar-senha/', views.alterar_senha, name='alterar-senha'),
    path('usuarios-pendentes/', views.usuarios_pendentes, name='usuarios-pendentes'),
    path('usuarios/<int:usuario_id>/aprovar/', views.aprovar_usuario, name='aprovar-usuario'),
]
