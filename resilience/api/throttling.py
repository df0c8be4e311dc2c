"""
API throttling classes for the resilience endpoints.
"""

from rest_framework.throttling import UserRateThrottle


class IssueFilingThrottle(UserRateThrottle):
    """
    Throttle for issue filing endpoints.

    Rate: 30 requests per hour per user.
    Applied to: /api/v1/sources/<id>/auto-file-issues/, /api/v1/alerts/<id>/file-issue/
    """

    rate = '30/hour'
    scope = 'issue_filing'


class FingerprintThrottle(UserRateThrottle):
    """
    Throttle for the fingerprint endpoint.

    Rate: 120 requests per hour per user.
    Applied to: /api/v1/fingerprint/
    """

    rate = '120/hour'
    scope = 'fingerprint'
