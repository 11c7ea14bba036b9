from django.urls import path
from . import views

urlpatterns = [
    # --- Trip URLs ---
    path('trips/', views.trip_collection, name='trip_collection'),
    path('trips/<int:trip_id>/', views.trip_detail, name='trip_detail'),
    path('trips/<int:trip_id>/upload/', views.trip_upload, name='trip_upload'),
    path('trips/<int:trip_id>/receive/', views.trip_receive, name='trip_receive'),
    path('trips/<int:trip_id>/validate/', views.trip_validate, name='trip_validate'),
    path('trips/<int:trip_id>/send-back/<str:target>/', views.trip_send_back, name='trip_send_back'),
    path('trips/<int:trip_id>/request-update/', views.trip_request_update, name='trip_request_update'),
    path('trips/<int:trip_id>/request-delete/', views.trip_request_delete, name='trip_request_delete'),
    path('trips/<int:trip_id>/raise-issue/', views.trip_raise_issue, name='trip_raise_issue'),
    path('trips/<int:trip_id>/activity/', views.trip_activity, name='trip_activity'),

    # --- Notification URLs ---
    path('notifications/', views.notification_list, name='notification_list'),
    path('notifications/<int:notification_id>/read/', views.notification_read, name='notification_read'),

    # --- Master Data URLs ---
    path('material-rates/', views.material_rate_collection, name='material_rate_collection'),
]
