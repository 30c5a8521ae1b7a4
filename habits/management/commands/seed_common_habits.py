from django.core.management.base import BaseCommand
from habits.seed import seed_common_habits


class Command(BaseCommand):
    help = 'Seeds the database with the catalog of common habits.'

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS('Seeding/updating common habits...'))

        count = 0
        for habit, created in seed_common_habits():
            count += 1
            if created:
                self.stdout.write(self.style.SUCCESS(f'  Created: {habit.icon} {habit.name} ({habit.category})'))
            else:
                self.stdout.write(self.style.NOTICE(f'  "{habit.name}" already exists, updating.'))

        self.stdout.write(self.style.SUCCESS(f'Successfully seeded {count} common habits.'))
