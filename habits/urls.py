from django.urls import path
from . import views

app_name = 'habits'

urlpatterns = [
    path('', views.habit_list, name='list'),
    path('dashboard/', views.dashboard, name='dashboard'),
    path('common/', views.common_habits, name='common'),
    path('suggest-verification/', views.suggest, name='suggest_verification'),
    path('<int:habit_id>/', views.habit_detail, name='detail'),
]
