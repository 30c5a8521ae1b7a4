from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('habits', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='CheckIn',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('image_url', models.URLField(max_length=500)),
                ('image_key', models.CharField(max_length=255)),
                ('verification_status', models.CharField(choices=[('pending', 'Pending'), ('verified', 'Verified'), ('rejected', 'Rejected')], default='pending', max_length=10)),
                ('ai_verification_note', models.TextField(blank=True)),
                ('check_in_date', models.DateTimeField(help_text='Start of the calendar day this check-in counts for')),
                ('points_earned', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('habit', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='check_ins', to='habits.habit')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='check_ins', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-check_in_date', '-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'habit', 'check_in_date'], name='checkin_user_habit_day_idx'),
                    models.Index(fields=['verification_status', 'created_at'], name='checkin_status_created_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('verification_status', 'verified')), fields=('user', 'habit', 'check_in_date'), name='unique_verified_checkin_per_day'),
                    models.CheckConstraint(condition=models.Q(('verification_status', 'verified'), ('points_earned', 0), _connector='OR'), name='checkin_points_only_when_verified'),
                ],
            },
        ),
    ]
