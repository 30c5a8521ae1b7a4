from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('streaks', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='streak',
            name='last_check_in_date',
            field=models.DateTimeField(blank=True, help_text='Most recent verified check-in counted in this streak', null=True),
        ),
    ]
