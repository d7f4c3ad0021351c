from django.contrib import admin
from django.urls import path, include
from core.views import HealthCheckView, SearchView
from django.conf import settings
from django.conf.urls.static import static
urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/users/', include('users.urls')),
    path('api/auth/', include('authx.urls')),
    path('api/projects/', include('projects.urls')),
    path('api/logbooks/', include('logbooks.urls')),
    path('api/', include('engagement.urls')),
    path("api/search/", SearchView.as_view(), name="search"),
    path("api/health/", HealthCheckView.as_view(), name="health-check"),
]
if settings.DEBUG:
    urlpatterns += static(
        settings.MEDIA_URL,
        document_root=settings.MEDIA_ROOT
    )
