# FreelaOS - Controle de Ordens de Serviço

# MySQL: usar PyMySQL no lugar do mysqlclient
import pymysql

pymysql.install_as_MySQLdb()

# Importa o app Celery para que seja carregado quando o Django iniciar
from .celery import app as celery_app

__all__ = ('celery_app',)
