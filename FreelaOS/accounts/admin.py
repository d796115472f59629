"""
Accounts app - Django Admin

Usuários usam o UserAdmin padrão do Django; aqui fica só o perfil (admin/aprovação).
"""

from django.contrib import admin
from .models import PerfilUsuario


@admin.register(PerfilUsuario)
class PerfilUsuarioAdmin(admin.ModelAdmin):
    list_display = ('usuario', 'is_admin', 'aprovado', 'criado_em')
    list_filter = ('is_admin', 'aprovado')
    search_fields = ('usuario__username',)
    readonly_fields = ('criado_em',)
    ordering = ('-criado_em',)
