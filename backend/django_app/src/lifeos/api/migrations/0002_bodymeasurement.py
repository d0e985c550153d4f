from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('api', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='BodyMeasurement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('weightKg', models.FloatField(blank=True, null=True)),
                ('bodyFatPct', models.FloatField(blank=True, null=True)),
                ('waistCm', models.FloatField(blank=True, null=True)),
                ('chestCm', models.FloatField(blank=True, null=True)),
                ('armsCm', models.FloatField(blank=True, null=True)),
                ('legsCm', models.FloatField(blank=True, null=True)),
                ('hipsCm', models.FloatField(blank=True, null=True)),
                ('shouldersCm', models.FloatField(blank=True, null=True)),
                ('neckCm', models.FloatField(blank=True, null=True)),
                ('forearmsCm', models.FloatField(blank=True, null=True)),
                ('calvesCm', models.FloatField(blank=True, null=True)),
                ('skinfoldData', models.JSONField(blank=True, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('measuredAt', models.DateTimeField(db_index=True)),
            ],
        ),
    ]
