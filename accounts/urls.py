from django.urls import path
from . import views

app_name = 'accounts'

urlpatterns = [
    path('verify/', views.verify, name='verify'),
    path('status/', views.status, name='status'),
]
