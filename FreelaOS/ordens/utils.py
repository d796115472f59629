"""
Conversão de valores recebidos em JSON ou formulário.
"""
from django.core.exceptions import ValidationError
from rest_framework import exceptions
from rest_framework.fields import BooleanField


def para_booleano(valor, padrao=False, campo='valor'):
    """
    Interpreta flags como o DRF: 'false', '0', 'off' são False; 'true', '1', 'on' são True.
    None ou '' devolvem o padrão.
    """
    if valor is None or valor == '':
        return padrao
    try:
        return BooleanField().to_internal_value(valor)
    except exceptions.ValidationError:
        raise ValidationError(f'Valor inválido para {campo}: "{valor}".')


def para_id(valor, mensagem):
    """ID inteiro positivo vindo da query string. None ou '' devolvem None."""
    if valor is None or valor == '':
        return None
    try:
        numero = int(str(valor).strip())
    except ValueError:
        raise ValidationError(mensagem)
    if numero <= 0:
        raise ValidationError(mensagem)
    return numero
