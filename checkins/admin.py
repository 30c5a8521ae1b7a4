from django.contrib import admin
from .models import CheckIn


@admin.register(CheckIn)
class CheckInAdmin(admin.ModelAdmin):
    list_display = ['user', 'habit', 'check_in_date', 'verification_status', 'points_earned', 'created_at']
    list_filter = ['verification_status', 'check_in_date']
    search_fields = ['user__email', 'habit__name']
    date_hierarchy = 'check_in_date'
    raw_id_fields = ['user', 'habit']
    readonly_fields = [
        'user', 'habit', 'image_url', 'image_key', 'verification_status', 'ai_verification_note',
        'check_in_date', 'points_earned', 'created_at', 'updated_at',
    ]
