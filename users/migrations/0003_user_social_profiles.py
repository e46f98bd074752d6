from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('users', '0002_user_team'),
    ]

    operations = [
        migrations.AddField(
            model_name='user',
            name='social_profiles',
            field=models.JSONField(blank=True, default=dict),
        ),
    ]
