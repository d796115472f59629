# Generated manually - Initial migration for ordens app

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Parceiro',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nome', models.CharField(help_text='Nome do parceiro (único)', max_length=200, unique=True, verbose_name='Nome')),
                ('username', models.CharField(help_text='Login do parceiro', max_length=150, unique=True, verbose_name='Usuário')),
                ('password_hash', models.CharField(blank=True, help_text='Hash da senha. Vazio para parceiros sem acesso ao sistema', max_length=128, null=True, verbose_name='Senha (hash)')),
                ('email', models.EmailField(blank=True, help_text='E-mail do parceiro (usado para login e notificações)', max_length=254, null=True, unique=True, verbose_name='E-mail')),
                ('contato', models.CharField(blank=True, default='', max_length=200, verbose_name='Pessoa de Contato')),
                ('aprovado', models.BooleanField(default=False, help_text='Parceiros não aprovados não conseguem fazer login', verbose_name='Aprovado')),
                ('criado_em', models.DateTimeField(auto_now_add=True, verbose_name='Criado em')),
                ('atualizado_em', models.DateTimeField(auto_now=True, verbose_name='Atualizado em')),
            ],
            options={
                'verbose_name': 'Parceiro',
                'verbose_name_plural': 'Parceiros',
                'ordering': ['nome'],
            },
        ),
        migrations.CreateModel(
            name='Cliente',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nome', models.CharField(help_text='Nome do cliente (único)', max_length=200, unique=True, verbose_name='Nome')),
                ('criado_em', models.DateTimeField(auto_now_add=True, verbose_name='Criado em')),
                ('atualizado_em', models.DateTimeField(auto_now=True, verbose_name='Atualizado em')),
                ('parceiro_origem', models.ForeignKey(blank=True, help_text='Parceiro que trouxe este cliente (opcional)', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='clientes_originados', to='ordens.parceiro', verbose_name='Parceiro de Origem')),
            ],
            options={
                'verbose_name': 'Cliente',
                'verbose_name_plural': 'Clientes',
                'ordering': ['nome'],
            },
        ),
        migrations.CreateModel(
            name='OrdemServico',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('numero', models.CharField(help_text='Número sequencial da OS com 6 dígitos (ex: 000042)', max_length=6, unique=True, verbose_name='Número')),
                ('projeto', models.CharField(max_length=255, verbose_name='Projeto')),
                ('tarefa', models.TextField(verbose_name='Tarefa')),
                ('observacoes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('checklist_json', models.TextField(blank=True, default='[]', help_text='Itens do checklist em JSON: [{"id", "text", "completed"}]', verbose_name='Checklist')),
                ('status', models.CharField(choices=[('na_fila', 'Na Fila'), ('aguardando_cliente', 'Aguardando Cliente'), ('em_producao', 'Em Produção'), ('aguardando_parceiro', 'Aguardando Parceiro'), ('aguardando_aprovacao', 'Aguardando Aprovação'), ('recusada', 'Recusada'), ('finalizado', 'Finalizado')], db_index=True, default='na_fila', max_length=30, verbose_name='Status')),
                ('urgente', models.BooleanField(default=False, verbose_name='Urgente')),
                ('data_abertura', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Data de Abertura')),
                ('programado_para', models.DateField(blank=True, help_text='Data agendada para execução (opcional)', null=True, verbose_name='Programado para')),
                ('data_finalizacao', models.DateTimeField(blank=True, null=True, verbose_name='Data de Finalização')),
                ('data_inicio_producao', models.DateTimeField(blank=True, help_text='Primeira vez que a OS entrou em produção', null=True, verbose_name='Início da Produção')),
                ('tempo_producao_segundos', models.PositiveIntegerField(default=0, help_text='Tempo acumulado das sessões de produção encerradas', verbose_name='Tempo de Produção (s)')),
                ('inicio_sessao_producao', models.DateTimeField(blank=True, help_text='Preenchido enquanto o cronômetro está rodando', null=True, verbose_name='Início da Sessão Atual')),
                ('atualizado_em', models.DateTimeField(auto_now=True, verbose_name='Atualizado em')),
                ('cliente', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ordens', to='ordens.cliente', verbose_name='Cliente')),
                ('parceiro', models.ForeignKey(blank=True, help_text='Parceiro responsável pela execução (opcional)', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ordens_executadas', to='ordens.parceiro', verbose_name='Parceiro Executor')),
                ('criado_por_parceiro', models.ForeignKey(blank=True, help_text='Parceiro que abriu a OS. Vazio quando criada por um administrador', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ordens_criadas', to='ordens.parceiro', verbose_name='Criada pelo Parceiro')),
            ],
            options={
                'verbose_name': 'Ordem de Serviço',
                'verbose_name_plural': 'Ordens de Serviço',
                'ordering': ['-data_abertura'],
                'indexes': [
                    models.Index(fields=['status', '-data_abertura'], name='ordens_os_status_idx'),
                    models.Index(fields=['urgente', '-data_abertura'], name='ordens_os_urgente_idx'),
                    models.Index(fields=['cliente', '-data_abertura'], name='ordens_os_cliente_idx'),
                    models.Index(fields=['parceiro', '-data_abertura'], name='ordens_os_parceiro_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Notificacao',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tipo_destinatario', models.CharField(choices=[('admin', 'Administradores'), ('parceiro', 'Parceiro')], max_length=20, verbose_name='Destinatário')),
                ('tipo', models.CharField(choices=[('os_criada_por_parceiro', 'OS Criada por Parceiro'), ('os_aprovada', 'OS Aprovada'), ('os_recusada', 'OS Recusada'), ('os_status_alterado', 'Status da OS Alterado'), ('generico', 'Genérico')], default='generico', max_length=50, verbose_name='Tipo de Notificação')),
                ('mensagem', models.TextField(verbose_name='Mensagem')),
                ('link', models.CharField(blank=True, default='', max_length=300, verbose_name='Link')),
                ('lida', models.BooleanField(default=False, verbose_name='Lida')),
                ('criado_em', models.DateTimeField(auto_now_add=True, verbose_name='Data de Criação')),
                ('parceiro', models.ForeignKey(blank=True, help_text='Parceiro destinatário (vazio para todos os administradores)', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='notificacoes', to='ordens.parceiro', verbose_name='Parceiro')),
                ('ordem_servico', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='notificacoes', to='ordens.ordemservico', verbose_name='OS Relacionada')),
            ],
            options={
                'verbose_name': 'Notificação',
                'verbose_name_plural': 'Notificações',
                'ordering': ['-criado_em'],
                'indexes': [
                    models.Index(fields=['tipo_destinatario', 'parceiro', 'lida', '-criado_em'], name='ordens_notif_dest_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='EmailLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tipo_email', models.CharField(choices=[('os_aprovada', 'OS Aprovada'), ('os_recusada', 'OS Recusada'), ('os_status_alterado', 'Status Alterado'), ('os_criada_email', 'OS Criada via E-mail')], db_index=True, max_length=30, verbose_name='Tipo de Email')),
                ('destinatarios', models.TextField(help_text='Lista de emails destinatários (separados por vírgula)', verbose_name='Destinatários')),
                ('assunto', models.CharField(max_length=500, verbose_name='Assunto')),
                ('status', models.CharField(choices=[('enviado', 'Enviado com Sucesso'), ('falhou', 'Falhou'), ('pendente', 'Pendente')], db_index=True, default='pendente', max_length=20, verbose_name='Status')),
                ('mensagem_erro', models.TextField(blank=True, help_text='Detalhes do erro caso o envio tenha falhado', null=True, verbose_name='Mensagem de Erro')),
                ('tentativas', models.IntegerField(default=1, verbose_name='Tentativas')),
                ('enviado_em', models.DateTimeField(blank=True, null=True, verbose_name='Enviado em')),
                ('criado_em', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Criado em')),
                ('atualizado_em', models.DateTimeField(auto_now=True, verbose_name='Atualizado em')),
                ('ordem_servico', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='email_logs', to='ordens.ordemservico', verbose_name='OS')),
            ],
            options={
                'verbose_name': 'Log de Email',
                'verbose_name_plural': 'Logs de Email',
                'ordering': ['-criado_em'],
                'indexes': [
                    models.Index(fields=['-criado_em', 'status'], name='ordens_emaillog_status_idx'),
                    models.Index(fields=['ordem_servico', 'tipo_email'], name='ordens_emaillog_os_tipo_idx'),
                ],
            },
        ),
    ]
