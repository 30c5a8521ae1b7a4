from django.contrib import admin
from .models import Streak


@admin.register(Streak)
class StreakAdmin(admin.ModelAdmin):
    list_display = ['user', 'habit', 'streak_length', 'start_date', 'last_check_in_date', 'end_date', 'is_active']
    list_filter = ['is_active']
    search_fields = ['user__email', 'habit__name']
    raw_id_fields = ['user', 'habit']
    # Streaks are written only by the check-in workflow.
    readonly_fields = ['user', 'habit', 'start_date', 'last_check_in_date', 'end_date', 'streak_length', 'is_active', 'created_at', 'updated_at']

    def has_add_permission(self, request):
        return False
