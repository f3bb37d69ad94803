import uuid
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ('domain', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='signatureauditevent',
            name='event_type',
            field=models.CharField(choices=[('ENVELOPE_CREATED', 'Envelope created'), ('ENVELOPE_SENT', 'Envelope sent'), ('ENVELOPE_COMPLETED', 'Envelope completed'), ('ENVELOPE_DECLINED', 'Envelope declined'), ('ENVELOPE_CANCELLED', 'Envelope cancelled'), ('SIGNER_SIGNED', 'Signer signed'), ('SIGNER_DECLINED', 'Signer declined'), ('SIGNER_REMINDER_SENT', 'Signer reminder sent'), ('ENVELOPE_UPDATED', 'Envelope updated'), ('SIGNER_ADDED', 'Signer added'), ('SIGNER_REMOVED', 'Signer removed')], max_length=40),
        ),
        migrations.CreateModel(
            name='Consent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('consent_given', models.BooleanField()),
                ('consent_timestamp', models.DateTimeField()),
                ('consent_text', models.TextField()),
                ('ip_address', models.CharField(blank=True, max_length=64, null=True)),
                ('user_agent', models.CharField(blank=True, max_length=512, null=True)),
                ('country', models.CharField(blank=True, max_length=64, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('envelope', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='consents', to='domain.envelope')),
                ('signer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='consents', to='domain.signer')),
                ('signature_event', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='consent', to='domain.signatureauditevent')),
            ],
            options={
                'db_table': 'signer_consents',
                'ordering': ['created_at'],
            },
        ),
    ]
