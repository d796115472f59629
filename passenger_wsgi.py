"""
Passenger WSGI na raiz do repositório (ao lado de FreelaOS).

Use este arquivo como "Arquivo de inicialização" no painel Python quando a
raiz do aplicativo for a pasta do repositório e não FreelaOS/.
O hook do PyMySQL fica em freelaos_central/__init__.py.
"""
import os
import sys

project_root = os.path.dirname(os.path.abspath(__file__))
freelaos_path = os.path.join(project_root, 'FreelaOS')
if freelaos_path not in sys.path:
    sys.path.insert(0, freelaos_path)

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'freelaos_central.settings')

from freelaos_central.wsgi import application  # noqa: E402,F401
