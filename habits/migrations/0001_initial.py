import datetime

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
            name='CommonHabit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, unique=True)),
                ('category', models.CharField(choices=[('health', 'Health'), ('productivity', 'Productivity'), ('wellness', 'Wellness'), ('fitness', 'Fitness'), ('learning', 'Learning'), ('lifestyle', 'Lifestyle'), ('custom', 'Custom')], max_length=20)),
                ('description', models.TextField()),
                ('verification_type', models.CharField(choices=[('photo', 'Photo'), ('manual', 'Manual'), ('timer', 'Timer'), ('location', 'Location')], default='photo', max_length=20)),
                ('verification_prompt', models.TextField()),
                ('icon', models.CharField(default='✓', max_length=16)),
                ('difficulty', models.CharField(choices=[('easy', 'Easy'), ('medium', 'Medium'), ('hard', 'Hard')], default='medium', max_length=10)),
                ('popularity_score', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-popularity_score', 'name'],
                'indexes': [models.Index(fields=['category', 'is_active'], name='commonhabit_category_idx')],
            },
        ),
        migrations.CreateModel(
            name='Habit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(choices=[('health', 'Health'), ('productivity', 'Productivity'), ('wellness', 'Wellness'), ('fitness', 'Fitness'), ('learning', 'Learning'), ('lifestyle', 'Lifestyle'), ('custom', 'Custom')], default='custom', max_length=20)),
                ('icon', models.CharField(default='✓', max_length=16)),
                ('verification_type', models.CharField(choices=[('photo', 'Photo'), ('manual', 'Manual'), ('timer', 'Timer'), ('location', 'Location')], default='photo', max_length=20)),
                ('verification_prompt', models.TextField(help_text='Evidence criteria given to the image verifier')),
                ('is_custom', models.BooleanField(default=False)),
                ('ai_generated', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('reminder_time', models.TimeField(default=datetime.time(9, 0))),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('common_habit', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='habits', to='habits.commonhabit')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='habits', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['user', 'is_active'], name='habit_user_active_idx')],
            },
        ),
        migrations.CreateModel(
            name='ReminderSendLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('idempotency_key', models.CharField(max_length=255, unique=True)),
                ('recipient_email', models.EmailField(max_length=254)),
                ('habit_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('recipient_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reminder_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Reminder Send Log',
                'verbose_name_plural': 'Reminder Send Logs',
                'ordering': ['-created_at'],
            },
        ),
    ]
