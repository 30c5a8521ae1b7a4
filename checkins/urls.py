from django.urls import path
from . import views

app_name = 'checkins'

urlpatterns = [
    path('', views.check_ins, name='list'),
    path('today/', views.today, name='today'),
    path('<int:check_in_id>/', views.check_in_detail, name='detail'),
]
