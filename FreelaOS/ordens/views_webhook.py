"""
Endpoints chamados por serviços externos (sem sessão de usuário).

- /api/email-ingest/: webhook do provedor de e-mail (ex: Mailgun) que cria uma OS
  a partir do e-mail de um parceiro cadastrado
- /api/cron/pause-timers/: chamado pelo agendador para pausar cronômetros fora do expediente
- /health/: verificação de conexão com o banco
"""
import hmac
import json
import logging
from email.utils import parseaddr
from django.conf import settings
from django.db import connection, DatabaseError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from . import services
from .email_utils import enviar_email_confirmacao_criacao
from .models import Parceiro

logger = logging.getLogger(__name__)


def _bearer_valido(request, segredo):
    if not segredo:
        return False
    recebido = request.headers.get('Authorization', '')
    return hmac.compare_digest(recebido.encode(), f'Bearer {segredo}'.encode())


@csrf_exempt
@require_http_methods(["POST"])
def email_ingest(request):
    """
    Cria uma OS a partir de um e-mail recebido.

    Body JSON:
    - from (ou sender): e-mail do parceiro, aceita "Nome <email>"
    - subject: vira o projeto ("[urgente]" no assunto marca a OS como urgente)
    - textBody (ou body-plain, body): vira a tarefa

    A OS entra aguardando aprovação e o cliente é o próprio parceiro.
    Remetente desconhecido responde 200 para o provedor não reenviar.
    """
    if not _bearer_valido(request, settings.EMAIL_INGEST_SECRET):
        return JsonResponse({'error': 'Unauthorized'}, status=401)

    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON body'}, status=400)
    if not isinstance(data, dict):
        return JsonResponse({'error': 'Invalid JSON body'}, status=400)

    remetente = data.get('from') or data.get('sender')
    assunto = data.get('subject')
    corpo = data.get('body-plain') or data.get('textBody') or data.get('body')

    faltando = [
        campo for campo, valor in (('from', remetente), ('subject', assunto), ('textBody', corpo))
        if not valor
    ]
    if faltando:
        return JsonResponse({'error': f'Missing required fields: {", ".join(faltando)}'}, status=400)

    try:
        email = parseaddr(str(remetente))[1].strip()
        parceiro = Parceiro.objects.filter(email__iexact=email).first() if email else None
        if parceiro is None or not parceiro.email:
            logger.warning(f"E-mail recebido de remetente desconhecido: {remetente}")
            return JsonResponse({'error': 'Could not process email.'}, status=200)

        ordem = services.criar_os(
            {
                'cliente': parceiro.nome,
                'projeto': assunto,
                'tarefa': corpo,
                'observacoes': 'OS criada automaticamente via e-mail.',
                'urgente': '[urgente]' in str(assunto).lower(),
            },
            criador=parceiro,
        )
        enviar_email_confirmacao_criacao(ordem, parceiro)
    except Exception as e:
        logger.error(f"Erro ao processar e-mail de {remetente}: {e}", exc_info=True)
        return JsonResponse({
            'error': 'An internal server error occurred while processing the email.',
            'details': str(e),
        }, status=500)

    logger.info(f"OS #{ordem.numero} criada via e-mail pelo parceiro {parceiro.nome}")
    return JsonResponse({
        'success': True,
        'osNumber': ordem.numero,
        'message': f'OS #{ordem.numero} created for partner {parceiro.nome}.',
    })


@csrf_exempt
@require_http_methods(["GET"])
def pausar_cronometros(request):
    """Pausa os cronômetros ativos quando a hora local está fora do expediente."""
    segredo = settings.CRON_SECRET
    if not segredo:
        logger.error("CRON_SECRET não configurado; pausa automática de cronômetros indisponível")
        return JsonResponse({
            'error': 'Internal Server Configuration Error',
            'message': 'The CRON_SECRET is not set on the server.',
        }, status=500)
    if not _bearer_valido(request, segredo):
        return JsonResponse({'error': 'Unauthorized'}, status=401)

    try:
        resultado = services.pausar_cronometros_fora_do_expediente()
    except DatabaseError as e:
        logger.error(f"Erro na pausa automática de cronômetros: {e}", exc_info=True)
        return JsonResponse({'error': 'An internal server error occurred.', 'details': str(e)}, status=500)

    resposta = {
        'checked_at': resultado['verificado_em'],
        'sao_paulo_hour': resultado['hora_local'],
    }
    if not resultado['fora_do_expediente']:
        resposta['message'] = 'Within working hours. No timers paused.'
        return JsonResponse(resposta)

    pausadas = resultado['pausadas']
    resposta.update({
        'success': True,
        'message': f'Outside working hours. Paused {len(pausadas)} timers.',
        'paused_count': len(pausadas),
        'paused_ids': [str(os_id) for os_id in pausadas],
    })
    return JsonResponse(resposta)


@require_http_methods(["GET"])
def health(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
            cursor.fetchone()
    except DatabaseError as e:
        logger.error(f"[Health Check] Erro de conexão com o banco: {e}")
        return JsonResponse({'status': 'error', 'db': 'disconnected', 'error': str(e)}, status=500)
    return JsonResponse({'status': 'ok', 'db': 'connected'})
