"""
REST API endpoints for the resilience pipeline.

This module provides endpoints for:
- Auto-filing GitHub issues for a source's new alerts
- Manually filing an issue for one alert (admin only)
- Computing the structural fingerprint of an HTML page

All endpoints require authentication and have rate limiting.
"""

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from resilience.api.throttling import FingerprintThrottle, IssueFilingThrottle
from resilience.health import generate_structure_hash
from resilience.remediation import auto_file_issues_for_alerts, file_issue_for_alert

logger = logging.getLogger(__name__)


# ============================================================
# Remediation Endpoints
# ============================================================

@extend_schema(
    tags=['Remediation'],
    summary='Auto-file GitHub issues for new alerts',
    description='''
    Run the automatic issue filing pipeline for alerts raised against a source.

    Only failure/degradation alerts at WARNING or CRITICAL are filed, subject
    to a daily cap per source, a per-type cooldown and open-issue dedup.
    ''',
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'alert_ids': {
                    'type': 'array',
                    'items': {'type': 'string', 'format': 'uuid'},
                    'description': 'Alert IDs from the latest health analysis',
                },
            },
            'required': ['alert_ids'],
        }
    },
    responses={
        200: {
            'description': 'Batch processed',
            'content': {'application/json': {'example': {'filed': 1, 'skipped': 2}}},
        },
        400: {'description': 'Missing or invalid alert_ids'},
    },
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([IssueFilingThrottle])
def auto_file_issues(request, source_id):
    """
    Auto-file issues for a source's alerts.

    Request body:
    {
        "alert_ids": ["<uuid>", ...]
    }

    Response: {"filed": <int>, "skipped": <int>}
    """
    alert_ids = request.data.get('alert_ids')
    if not isinstance(alert_ids, list) or not all(isinstance(a, str) for a in alert_ids):
        return Response(
            {'error': 'alert_ids must be a list of strings'},
            status=status.HTTP_400_BAD_REQUEST
        )

    summary = auto_file_issues_for_alerts(str(source_id), alert_ids)
    return Response(summary.to_dict())


@extend_schema(
    tags=['Remediation'],
    summary='File a GitHub issue for one alert',
    description='''
    File an issue for a single alert on an operator's request.

    Eligibility and the automatic filing guards do not apply. The filing
    is recorded in the alert's repair log with the operator's user ID.
    ''',
    request=None,
    responses={
        201: {
            'description': 'Issue created',
            'content': {
                'application/json': {
                    'example': {
                        'success': True,
                        'issue_url': 'https://github.com/owner/repo/issues/42',
                        'issue_number': 42,
                    }
                }
            },
        },
        404: {'description': 'Alert not found'},
        502: {'description': 'GitHub rejected the request'},
        503: {'description': 'GITHUB_TOKEN not configured'},
    },
)
@api_view(['POST'])
@permission_classes([IsAdminUser])
@throttle_classes([IssueFilingThrottle])
def file_alert_issue(request, alert_id):
    """
    File an issue for one alert.

    Response includes the issue URL and number on success.
    """
    result = file_issue_for_alert(str(alert_id), admin_id=str(request.user.pk))

    if result.success:
        return Response(result.to_dict(), status=status.HTTP_201_CREATED)

    if result.error == 'Alert not found':
        http_status = status.HTTP_404_NOT_FOUND
    elif result.error == 'GITHUB_TOKEN not configured':
        http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        http_status = status.HTTP_502_BAD_GATEWAY

    return Response(result.to_dict(), status=http_status)


# ============================================================
# Fingerprint Endpoints
# ============================================================

@extend_schema(
    tags=['Health'],
    summary='Compute structural fingerprint',
    description='''
    Compute the structural fingerprint of a hareline page.

    The fingerprint covers the layout of the anchor tables only; text and
    attribute values other than class do not affect it.
    ''',
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'html': {'type': 'string', 'description': 'Raw page HTML'},
            },
            'required': ['html'],
        }
    },
    responses={
        200: {
            'description': 'Fingerprint computed',
            'content': {'application/json': {'example': {'fingerprint': '3f2a...'}}},
        },
        400: {'description': 'Missing html'},
    },
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([FingerprintThrottle])
def fingerprint(request):
    """
    Compute a structural fingerprint.

    Request body:
    {
        "html": "<html>...</html>"
    }
    """
    html = request.data.get('html')
    if not isinstance(html, str):
        return Response(
            {'error': 'html is required'},
            status=status.HTTP_400_BAD_REQUEST
        )

    return Response({'fingerprint': generate_structure_hash(html)})
