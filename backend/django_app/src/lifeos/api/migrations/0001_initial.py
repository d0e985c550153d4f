from django.db import migrations, models
import django.db.models.deletion
import lifeos.api.models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Todo',
            fields=[
                ('id', models.CharField(default=lifeos.api.models._random_id, primary_key=True, serialize=False, max_length=64)),
                ('title', models.CharField(max_length=255)),
                ('notes', models.TextField(blank=True, null=True)),
                ('dueDate', models.DateTimeField(blank=True, null=True)),
                ('completed', models.BooleanField(default=False)),
                ('completedAt', models.DateTimeField(blank=True, null=True)),
                ('priority', models.CharField(default='normal', max_length=16)),
                ('icon', models.CharField(blank=True, null=True, max_length=16)),
                ('category', models.CharField(default='manual', max_length=32)),
                ('isRecurring', models.BooleanField(default=False)),
                ('recurrence', models.CharField(blank=True, null=True, max_length=16, choices=[('daily', 'Daily'), ('weekdays', 'Weekdays'), ('weekly', 'Weekly'), ('monthly', 'Monthly')])),
                ('createdAt', models.DateTimeField(auto_now_add=True)),
                ('recurrenceParent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='instances', to='api.todo')),
            ],
            options={
                'indexes': [models.Index(fields=['recurrenceParent', 'dueDate'], name='todo_parent_due_idx')],
            },
        ),
        migrations.CreateModel(
            name='Reminder',
            fields=[
                ('id', models.CharField(default=lifeos.api.models._random_id, primary_key=True, serialize=False, max_length=64)),
                ('title', models.CharField(max_length=255)),
                ('body', models.TextField(blank=True, null=True)),
                ('remindAt', models.DateTimeField()),
                ('url', models.CharField(default='/todos', max_length=255)),
                ('fired', models.BooleanField(default=False)),
                ('createdAt', models.DateTimeField(auto_now_add=True)),
                ('todo', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reminders', to='api.todo')),
            ],
        ),
        migrations.CreateModel(
            name='UserSettings',
            fields=[
                ('id', models.CharField(default='default', primary_key=True, serialize=False, max_length=32)),
                ('data', models.JSONField(default=dict)),
                ('updatedAt', models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name='FoodLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('foodDescription', models.TextField()),
                ('notes', models.TextField(blank=True, null=True)),
                ('calories', models.FloatField(default=0)),
                ('proteinG', models.FloatField(default=0)),
                ('carbsG', models.FloatField(default=0)),
                ('fatG', models.FloatField(default=0)),
                ('loggedAt', models.DateTimeField(db_index=True)),
            ],
        ),
        migrations.CreateModel(
            name='WaterLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amountMl', models.IntegerField()),
                ('loggedAt', models.DateTimeField(db_index=True)),
            ],
        ),
        migrations.CreateModel(
            name='WorkoutLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('workoutType', models.CharField(max_length=64)),
                ('durationMinutes', models.IntegerField(default=0)),
                ('notes', models.TextField(blank=True, null=True)),
                ('startedAt', models.DateTimeField(db_index=True)),
            ],
        ),
        migrations.CreateModel(
            name='AutomationFiring',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(max_length=16, choices=[('rule', 'Automation rule'), ('recurrence', 'Recurring todo'), ('cron', 'Daily refresh')])),
                ('key', models.CharField(max_length=128)),
                ('day', models.DateField()),
                ('createdAt', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'unique_together': {('kind', 'key', 'day')},
            },
        ),
    ]
