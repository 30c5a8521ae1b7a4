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
            name='UserProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('external_id', models.CharField(blank=True, help_text='Subject id issued by the identity provider', max_length=128, null=True, unique=True)),
                ('display_name', models.CharField(blank=True, max_length=150)),
                ('current_streak', models.PositiveIntegerField(default=0)),
                ('longest_streak', models.PositiveIntegerField(default=0)),
                ('total_points', models.PositiveIntegerField(default=0)),
                ('level', models.PositiveIntegerField(default=1, help_text='Derived: total_points // 500 + 1')),
                ('total_check_ins', models.PositiveIntegerField(default=0)),
                ('last_check_in_date', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [models.Index(fields=['-current_streak'], name='profile_current_streak_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('longest_streak__gte', models.F('current_streak'))), name='profile_longest_streak_gte_current')],
            },
        ),
    ]
