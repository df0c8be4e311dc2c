"""
Resilience service views.

Includes the health check endpoint for monitoring and load balancer checks.
"""

from django.db import connection
from django.http import JsonResponse

from resilience.ai import is_ai_recovery_available
from resilience.remediation.github_client import GitHubIssueClient


def health_check(request):
    """
    Health check endpoint for the resilience service.

    Endpoint: GET /api/health/
    No authentication required (for load balancer checks).

    Response fields:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "error"
        - ai_recovery_available: True if a Gemini key is configured
        - issue_filing_configured: True if a GitHub token is configured

    Returns:
        JsonResponse: HTTP 200 for healthy, HTTP 503 for unhealthy
    """
    status = "healthy"
    http_status = 200

    database_status = "connected"
    try:
        connection.ensure_connection()
    except Exception:
        database_status = "error"
        status = "unhealthy"
        http_status = 503

    response_data = {
        "status": status,
        "database": database_status,
        "ai_recovery_available": is_ai_recovery_available(),
        "issue_filing_configured": GitHubIssueClient().is_configured,
    }

    return JsonResponse(response_data, status=http_status)
