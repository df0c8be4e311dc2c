"""
URL patterns for the resilience REST API.

Endpoints:
- POST /api/v1/sources/<source_id>/auto-file-issues/ - Auto-file issues for new alerts
- POST /api/v1/alerts/<alert_id>/file-issue/         - File an issue for one alert
- POST /api/v1/fingerprint/                          - Structural fingerprint of a page
"""

from django.urls import path

from resilience.api.views import auto_file_issues, file_alert_issue, fingerprint

app_name = 'resilience_api'

urlpatterns = [
    # Remediation endpoints
    path('sources/<uuid:source_id>/auto-file-issues/', auto_file_issues, name='auto_file_issues'),
    path('alerts/<uuid:alert_id>/file-issue/', file_alert_issue, name='file_alert_issue'),

    # Health endpoints
    path('fingerprint/', fingerprint, name='fingerprint'),
]
