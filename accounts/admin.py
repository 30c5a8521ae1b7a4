from django.contrib import admin
from .models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'display_name', 'current_streak', 'longest_streak', 'total_points', 'level', 'total_check_ins', 'last_check_in_date']
    search_fields = ['user__email', 'display_name', 'external_id']
    readonly_fields = [
        'external_id', 'current_streak', 'longest_streak', 'total_points', 'level',
        'total_check_ins', 'last_check_in_date', 'created_at', 'updated_at',
    ]
