"""
URL configuration for BOQ project.
"""

from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

urlpatterns = [
    # API v1
    path('api/v1/', include('presentation.api.v1.urls')),
]

# Serve exported files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
