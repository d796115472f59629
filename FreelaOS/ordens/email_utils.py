"""
Utilitários para envio de e-mails de notificação das Ordens de Serviço.

Falhas de envio nunca interrompem o fluxo principal: são registradas no EmailLog
e no logger.
"""
import logging
import time
from django.core.mail import EmailMultiAlternatives
from django.conf import settings
from django.utils.html import escape

logger = logging.getLogger(__name__)

# Backends que não precisam de credenciais SMTP
_BACKENDS_LOCAIS = (
    'django.core.mail.backends.console.EmailBackend',
    'django.core.mail.backends.locmem.EmailBackend',
    'django.core.mail.backends.filebased.EmailBackend',
    'django.core.mail.backends.dummy.EmailBackend',
)


def email_configurado():
    """SMTP precisa de usuário e senha; backends locais (console, testes) sempre podem enviar."""
    if settings.EMAIL_BACKEND in _BACKENDS_LOCAIS:
        return True
    return bool(settings.EMAIL_HOST_USER and settings.EMAIL_HOST_PASSWORD)


def _url_os(ordem):
    return f"{getattr(settings, 'SITE_URL', 'http://localhost:8000')}/os/{ordem.pk}/"


def _criar_log_email(tipo_email, ordem, destinatarios, assunto):
    """
    Cria um registro de log de email.
    Se falhar, retorna None mas não impede o envio do email.
    """
    try:
        from .models import EmailLog

        return EmailLog.objects.create(
            tipo_email=tipo_email,
            ordem_servico=ordem,
            destinatarios=', '.join(destinatarios) if isinstance(destinatarios, list) else destinatarios,
            assunto=assunto,
            status='pendente'
        )
    except Exception as e:
        logger.warning(f"Erro ao criar log de email (email ainda será enviado): {e}")
        return None


def _enviar_email_com_retry(email_obj, email_log, max_tentativas=3, delay=2):
    """
    Envia email com retry automático em caso de falha.

    Args:
        email_obj: Objeto EmailMultiAlternatives
        email_log: Instância de EmailLog para registrar (pode ser None)
        max_tentativas: Número máximo de tentativas (padrão: 3)
        delay: Delay entre tentativas em segundos (padrão: 2)

    Returns:
        bool: True se enviado com sucesso, False caso contrário
    """
    ultimo_erro = None

    for tentativa in range(1, max_tentativas + 1):
        try:
            email_obj.send(fail_silently=False)
        except Exception as e:
            ultimo_erro = e
            if email_log:
                try:
                    email_log.marcar_como_falhou(str(e))
                except Exception as log_error:
                    logger.warning(f"Erro ao atualizar log de falha: {log_error}")
            logger.warning(f"Tentativa {tentativa}/{max_tentativas} de envio falhou: {e}")

            if tentativa < max_tentativas:
                time.sleep(delay)
        else:
            if email_log:
                try:
                    email_log.marcar_como_enviado()
                except Exception as log_error:
                    logger.warning(f"Email enviado mas erro ao atualizar log: {log_error}")
            logger.info(f"Email enviado (tentativa {tentativa}/{max_tentativas}) - Log ID: {email_log.pk if email_log else 'N/A'}")
            return True

    log_id = email_log.pk if email_log else "N/A"
    logger.error(
        f"Falha ao enviar email após {max_tentativas} tentativas - Log ID: {log_id} - Erro: {ultimo_erro}"
    )
    return False


def _gerar_html_email(titulo, conteudo, ordem=None, url_detalhes=None):
    """Gera o HTML dos e-mails (visual neutro, sem imagens)."""
    html = f"""
    <!DOCTYPE html>
    <html lang="pt-BR">
    <head>
        <meta charset="UTF-8">
        <style>
            body {{ font-family: Arial, sans-serif; font-size: 15px; line-height: 1.5; color: #374151;
                    max-width: 560px; margin: 0 auto; padding: 24px 20px; background-color: #f9fafb; }}
            .email-container {{ background: #ffffff; border: 1px solid #e5e7eb; border-radius: 6px; }}
            .email-header {{ padding: 20px 24px; border-bottom: 1px solid #e5e7eb; }}
            .email-header h1 {{ margin: 0; font-size: 18px; color: #111827; }}
            .email-body {{ padding: 24px; }}
            .info-box {{ background: #f9fafb; border: 1px solid #e5e7eb; border-radius: 4px; padding: 16px 20px; }}
            .info-label {{ font-weight: 500; color: #6b7280; display: inline-block; min-width: 120px; }}
            .btn {{ display: inline-block; padding: 10px 20px; background: #111827; color: #ffffff !important;
                    text-decoration: none; border-radius: 4px; font-size: 14px; }}
            .email-footer {{ padding: 16px 24px; border-top: 1px solid #f3f4f6; font-size: 12px; color: #9ca3af; }}
        </style>
    </head>
    <body>
        <div class="email-container">
            <div class="email-header"><h1>{titulo}</h1></div>
            <div class="email-body">
                {conteudo}
    """
    if ordem:
        html += f"""
                <div class="info-box">
                    <div><span class="info-label">OS</span> <strong>#{ordem.numero}</strong></div>
                    <div><span class="info-label">Cliente</span> {escape(ordem.cliente.nome)}</div>
                    <div><span class="info-label">Projeto</span> {escape(ordem.projeto)}</div>
                    <div><span class="info-label">Status</span> {ordem.get_status_display()}</div>
                </div>
        """
    if url_detalhes:
        html += f"""
                <p><a href="{url_detalhes}" class="btn">Ver OS #{ordem.numero if ordem else ''}</a></p>
        """
    html += """
            </div>
            <div class="email-footer"><p>FreelaOS - Mensagem automática. Não responda a este e-mail.</p></div>
        </div>
    </body>
    </html>
    """
    return html


def _enviar(tipo_email, ordem, destinatario, assunto, texto, conteudo_html, titulo):
    if not email_configurado():
        logger.warning(
            f"Email não configurado. E-mail '{assunto}' não enviado. "
            f"Configure EMAIL_HOST_USER e EMAIL_HOST_PASSWORD nas variáveis de ambiente."
        )
        return False

    html_content = _gerar_html_email(titulo, conteudo_html, ordem, _url_os(ordem))
    email_log = _criar_log_email(tipo_email, ordem, [destinatario], assunto)

    try:
        email = EmailMultiAlternatives(
            subject=assunto,
            body=texto,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[destinatario],
        )
        email.attach_alternative(html_content, "text/html")
        return _enviar_email_com_retry(email, email_log)
    except Exception as e:
        if email_log:
            try:
                email_log.marcar_como_falhou(str(e))
            except Exception as log_error:
                logger.warning(f"Erro ao atualizar log de falha: {log_error}")
        logger.error(f"Erro ao enviar e-mail da OS #{ordem.numero}: {e}", exc_info=True)
        return False


def enviar_email_aprovacao(ordem, aprovada, aprovador_nome='Administrador'):
    """
    Avisa o parceiro que abriu a OS que ela foi aprovada (voltou para a fila) ou recusada.
    """
    parceiro = ordem.criado_por_parceiro
    if not parceiro or not parceiro.email:
        logger.warning(
            f"E-mail de aprovação da OS #{ordem.numero} não enviado: parceiro sem e-mail cadastrado."
        )
        return False

    url = _url_os(ordem)
    if aprovada:
        assunto = f'OS #{ordem.numero} Aprovada - FreelaOS'
        resultado = 'APROVADA'
        complemento = 'e agora está na fila de produção.'
    else:
        assunto = f'OS #{ordem.numero} Recusada - FreelaOS'
        resultado = 'RECUSADA'
        complemento = ('Entre em contato com o administrador para mais detalhes '
                       'ou acesse a OS para verificar observações.')

    texto = f"""Olá {parceiro.nome},

Sua Ordem de Serviço #{ordem.numero} ("{ordem.projeto}") foi {resultado} por {aprovador_nome} {complemento}

Detalhes da OS: {url}

Atenciosamente,
Equipe FreelaOS
"""
    conteudo_html = (
        f"<p>Olá {escape(parceiro.nome)},</p>"
        f"<p>Sua Ordem de Serviço #{ordem.numero} (\"{escape(ordem.projeto)}\") foi "
        f"<strong>{resultado}</strong> por {escape(aprovador_nome)} {complemento}</p>"
    )
    tipo = 'os_aprovada' if aprovada else 'os_recusada'
    return _enviar(tipo, ordem, parceiro.email, assunto, texto, conteudo_html, f'OS {resultado.capitalize()}')


def enviar_email_mudanca_status(ordem, status_anterior_display):
    """Avisa o parceiro envolvido (criador ou executor) sobre a mudança de status."""
    parceiro = ordem.criado_por_parceiro or ordem.parceiro
    if not parceiro or not parceiro.email:
        logger.debug(f"OS #{ordem.numero} sem parceiro com e-mail. Aviso de status não enviado.")
        return False

    assunto = f'OS #{ordem.numero} - Status alterado para {ordem.get_status_display()} - FreelaOS'
    texto = f"""Olá {parceiro.nome},

O status da Ordem de Serviço #{ordem.numero} ("{ordem.projeto}") mudou de "{status_anterior_display}" para "{ordem.get_status_display()}".

Detalhes da OS: {_url_os(ordem)}

Atenciosamente,
Equipe FreelaOS
"""
    conteudo_html = (
        f"<p>Olá {escape(parceiro.nome)},</p>"
        f"<p>O status da OS mudou de <strong>{escape(status_anterior_display)}</strong> "
        f"para <strong>{ordem.get_status_display()}</strong>.</p>"
    )
    return _enviar('os_status_alterado', ordem, parceiro.email, assunto, texto, conteudo_html, 'Status da OS Alterado')


def enviar_email_confirmacao_criacao(ordem, parceiro):
    """Confirma ao parceiro que a OS enviada por e-mail foi criada e aguarda aprovação."""
    assunto = f'OS #{ordem.numero} Recebida - FreelaOS'
    texto = f"""Olá {parceiro.nome},

Recebemos sua solicitação e criamos a Ordem de Serviço #{ordem.numero} ("{ordem.projeto}").
Ela está aguardando aprovação de um administrador.

Detalhes da OS: {_url_os(ordem)}

Atenciosamente,
Equipe FreelaOS
"""
    conteudo_html = (
        f"<p>Olá {escape(parceiro.nome)},</p>"
        f"<p>Recebemos sua solicitação e criamos a OS <strong>#{ordem.numero}</strong>. "
        f"Ela está aguardando aprovação de um administrador.</p>"
    )
    return _enviar('os_criada_email', ordem, parceiro.email, assunto, texto, conteudo_html, 'OS Recebida')
