"""
Prometheus metrics endpoint.

Exposes system metrics for monitoring.
"""
from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter()

# ============================================
# HTTP Request Metrics
# ============================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================
# Business Metrics - Reports
# ============================================

reports_queued = Counter(
    'reports_queued_total',
    'Total report jobs queued'
)

reports_completed = Counter(
    'reports_completed_total',
    'Total report jobs completed by the workflow'
)

reports_failed = Counter(
    'reports_failed_total',
    'Total report jobs failed',
    ['stage']
)

previews_generated = Counter(
    'report_previews_generated_total',
    'Total 2-page previews derived from full reports'
)

report_links_signed = Counter(
    'report_links_signed_total',
    'Total signed report links handed out',
    ['type']
)

# ============================================
# Business Metrics - Payments
# ============================================

payments_verified = Counter(
    'payments_verified_total',
    'Total payment verifications',
    ['result']
)

# ============================================
# Rate Limiting Metrics
# ============================================

rate_limit_exceeded = Counter(
    'rate_limit_exceeded_total',
    'Total requests blocked by rate limiting'
)


# ============================================
# Metrics Helper Functions
# ============================================

def track_request(method: str, endpoint: str, status: int, duration_seconds: float):
    """
    Record HTTP request metrics.

    Call this after each request.
    """
    http_requests_total.labels(
        method=method,
        endpoint=endpoint,
        status=status
    ).inc()

    http_request_duration.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration_seconds)


def track_report_queued():
    reports_queued.inc()


def track_report_completed():
    reports_completed.inc()


def track_report_failed(stage: str):
    """Record a failed report; stage is dispatch or workflow."""
    reports_failed.labels(stage=stage).inc()


def track_preview_generated():
    previews_generated.inc()


def track_link_signed(link_type: str):
    report_links_signed.labels(type=link_type).inc()


def track_payment_verification(verified: bool):
    payments_verified.labels(result="verified" if verified else "rejected").inc()


def track_rate_limit_exceeded():
    rate_limit_exceeded.inc()


# ============================================
# Prometheus Endpoint
# ============================================

@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns all registered metrics in Prometheus format.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
