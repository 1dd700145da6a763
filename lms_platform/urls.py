from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path('admin/', admin.site.urls),

    # --- Authentication ---
    path('api/auth/token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),

    # --- Attempts, grading and dashboard stats ---
    path('api/', include('attempts.urls')),

    # --- Audit trail ---
    path('api/admin/', include('cores.urls')),

    # --- Assessment authoring (router) ---
    path('api/', include('assessments.urls')),
]
