from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Resource',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('category', models.CharField(db_index=True, max_length=100)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('url', models.URLField(blank=True, default='', max_length=2048)),
                ('file_key', models.CharField(blank=True, default='', max_length=512)),
                ('file_url', models.CharField(blank=True, default='', max_length=1024)),
                ('file_download_url', models.CharField(blank=True, default='', max_length=1024)),
                ('file_name', models.CharField(blank=True, default='', max_length=255)),
                ('file_mime_type', models.CharField(blank=True, default='', max_length=127)),
                ('file_size', models.PositiveBigIntegerField(blank=True, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')], db_index=True, default='pending', max_length=10)),
                ('rejection_reason', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('added_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='resources', to=settings.AUTH_USER_MODEL)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='approved_resources', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'constraints': [models.CheckConstraint(condition=models.Q(models.Q(('url', ''), models.Q(('file_key', ''), _negated=True)), models.Q(models.Q(('url', ''), _negated=True), ('file_key', '')), _connector='OR'), name='resource_exactly_one_source')],
            },
        ),
    ]
