"""
Configuração Celery para o FreelaOS.

Configura broker e backend do Celery para as tarefas periódicas,
como a pausa automática dos cronômetros fora do expediente.
"""
import os
from celery import Celery

# Define o módulo de configuração do Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'freelaos_central.settings')

app = Celery('freelaos_central')

# Carrega configurações do Django
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-descobre tarefas em apps instalados
app.autodiscover_tasks()
