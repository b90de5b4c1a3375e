"""
URL configuration for the dailycollect project.
"""

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # Django admin
    path('admin/', admin.site.urls),

    # JSON API
    path('api/', include(('core.urls', 'core'), namespace='core')),
]
