from django.contrib import admin
from django.contrib.auth import views as auth_views
from django.urls import path, include

urlpatterns = [
    # 1. Django Admin Interface (master data and material rates)
    path('admin/', admin.site.urls),

    # 2. Trip workflow JSON endpoints
    path('api/', include('trips.urls')),
    path('accounts/login/', auth_views.LoginView.as_view(template_name='admin/login.html'), name='login'),
    path('accounts/logout/', auth_views.LogoutView.as_view(), name='logout'),
]
