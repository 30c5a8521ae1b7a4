from django.urls import path
from . import views

app_name = 'streaks'

urlpatterns = [
    path('current/', views.current, name='current'),
    path('stats/', views.stats, name='stats'),
    path('history/', views.history, name='history'),
    path('leaderboard/', views.leaderboard, name='leaderboard'),
]
