from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # --- Authentication & Profile ---
    path('api/', include('users.urls')),

    # --- Student Dashboard & Exam Taking ---
    path('api/', include('assessments.urls')),

    # --- Exam Authoring (Examiners / Admins) ---
    path('api/', include('exams.urls')),

    # --- Admin Audit Trail ---
    path('api/', include('cores.urls')),
]
