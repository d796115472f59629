"""
Comando para pausar os cronômetros das OS em produção fora do expediente.

Uso:
  python manage.py pausar_cronometros

Agendar (ex.: a cada 15 minutos) via cron quando o Celery beat não estiver rodando.
"""
from django.core.management.base import BaseCommand

from ordens.services import pausar_cronometros_fora_do_expediente


class Command(BaseCommand):
    help = "Pausa os cronômetros ativos quando a hora local está fora do expediente."

    def handle(self, *args, **options):
        resultado = pausar_cronometros_fora_do_expediente()
        hora = resultado['hora_local']
        if not resultado['fora_do_expediente']:
            self.stdout.write(f'Dentro do expediente ({hora}h). Nenhum cronômetro pausado.')
            return
        pausadas = resultado['pausadas']
        self.stdout.write(self.style.SUCCESS(
            f'Fora do expediente ({hora}h). Cronômetros pausados: {len(pausadas)}.'
        ))
