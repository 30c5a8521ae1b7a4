from django.contrib import admin
from .models import CommonHabit, Habit, ReminderSendLog


@admin.register(CommonHabit)
class CommonHabitAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'verification_type', 'difficulty', 'popularity_score', 'is_active']
    list_filter = ['category', 'verification_type', 'difficulty', 'is_active']
    search_fields = ['name', 'description']
    ordering = ['-popularity_score']


@admin.register(Habit)
class HabitAdmin(admin.ModelAdmin):
    list_display = ['name', 'user', 'category', 'is_custom', 'is_active', 'reminder_time', 'created_at']
    list_filter = ['category', 'is_custom', 'is_active']
    search_fields = ['name', 'user__email']
    raw_id_fields = ['user', 'common_habit']
    actions = ['deactivate']

    @admin.action(description='Deactivate selected habits')
    def deactivate(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f'{updated} habit(s) deactivated.')

    def has_delete_permission(self, request, obj=None):
        # Check-in and streak history hang off habits.
        return False


@admin.register(ReminderSendLog)
class ReminderSendLogAdmin(admin.ModelAdmin):
    list_display = ['recipient_email', 'habit_count', 'created_at']
    search_fields = ['recipient_email', 'idempotency_key']
    readonly_fields = ['idempotency_key', 'recipient_email', 'recipient_user', 'habit_count', 'created_at']
