from django.db import models
from django.contrib.auth.models import User


class PerfilUsuario(models.Model):
    """
    Perfil do usuário interno (equipe).
    O primeiro usuário registrado vira administrador aprovado; os demais aguardam aprovação.
    """
    usuario = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='perfil_os',
        verbose_name='Usuário'
    )
    is_admin = models.BooleanField(default=False, verbose_name='Administrador')
    aprovado = models.BooleanField(
        default=False,
        verbose_name='Aprovado',
        help_text='Usuários não aprovados não conseguem fazer login'
    )
    criado_em = models.DateTimeField(auto_now_add=True, verbose_name='Criado em')

    class Meta:
        verbose_name = 'Perfil de Usuário'
        verbose_name_plural = 'Perfis de Usuário'
        ordering = ['usuario__username']

    def __str__(self):
        papel = 'Admin' if self.is_admin else 'Usuário'
        return f"{self.usuario.username} ({papel})"
