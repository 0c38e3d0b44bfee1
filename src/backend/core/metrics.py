"""
Prometheus metrics for device traffic and deployment linkage.

HTTP request metrics come from the instrumentator (core.instrumentator);
the counters below track domain events that have no endpoint of their own.

Usage:
    from core.metrics import heartbeats_ingested

    heartbeats_ingested.labels(has_mac="true").inc()
"""

from prometheus_client import Counter

# ==============================================================================
# Heartbeat & Device Metrics
# ==============================================================================

heartbeats_ingested = Counter(
    'branchops_heartbeats_ingested_total',
    'Heartbeats accepted from recording devices',
    ['has_mac']
)

devices_auto_registered = Counter(
    'branchops_devices_auto_registered_total',
    'Devices created on their first heartbeat'
)

# ==============================================================================
# Deployment Metrics
# ==============================================================================

deployment_conflicts = Counter(
    'branchops_deployment_conflicts_total',
    'Deployment writes rejected because a device, branch or user is already linked',
    ['field']
)

# ==============================================================================
# Recording Metrics
# ==============================================================================

recordings_uploaded = Counter(
    'branchops_recordings_uploaded_total',
    'Voice recordings uploaded by devices',
    ['extension']
)
