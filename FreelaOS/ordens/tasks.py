"""
Tarefas Celery do FreelaOS.

- Pausa automática dos cronômetros fora do expediente (agendada no CELERY_BEAT_SCHEDULE)
"""
import logging
from celery import shared_task
from django.db import DatabaseError

from .services import pausar_cronometros_fora_do_expediente

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def pausar_cronometros_task(self):
    """
    Pausa os cronômetros ativos se a hora local estiver fora do expediente.
    Retorna a lista de IDs das OS pausadas.
    """
    try:
        resultado = pausar_cronometros_fora_do_expediente()
    except DatabaseError as exc:
        logger.error(f"Erro ao pausar cronômetros: {exc}", exc_info=True)
        raise self.retry(exc=exc)
    return resultado['pausadas']
