"""
Report-cache invalidation port.

Posting never depends on the cache: ``invalidate_reports_quietly`` logs and
discards every failure.
"""
import logging
from typing import Protocol

from django.core.cache import cache
from django.utils.module_loading import import_string

from .conf import ledger_settings

logger = logging.getLogger(__name__)


class ReportCacheInvalidator(Protocol):
    def invalidate(self, tenant_id, pattern): ...


class CeleryReportCacheInvalidator:
    """Hands the work to the ``invalidate_report_cache`` task."""

    def invalidate(self, tenant_id, pattern):
        from .tasks import invalidate_report_cache

        invalidate_report_cache.delay(tenant_id, pattern)


class NullReportCacheInvalidator:
    def invalidate(self, tenant_id, pattern):
        return None


def get_report_cache_invalidator():
    return import_string(ledger_settings.REPORT_CACHE_INVALIDATOR)()


def _version_key(tenant_id):
    return f"report-cache-version:{tenant_id}"


def report_cache_key(tenant_id, name):
    """Key under which a report for the tenant is cached."""
    version = cache.get(_version_key(tenant_id), 1)
    return f"report:{tenant_id}:v{version}:{name}"


def clear_report_cache(tenant_id, pattern):
    """
    Drop cached reports. Backends with pattern deletion (django-redis) get
    the pattern; the rest get a version bump that orphans the old keys.
    """
    delete_pattern = getattr(cache, "delete_pattern", None)
    if delete_pattern is not None:
        return delete_pattern(pattern)
    key = _version_key(tenant_id)
    if cache.add(key, 2, timeout=None):
        return 2
    return cache.incr(key)


def invalidate_reports_quietly(tenant_id, invalidator=None):
    pattern = ledger_settings.REPORT_CACHE_PATTERN.format(tenant_id=tenant_id)
    try:
        (invalidator or get_report_cache_invalidator()).invalidate(tenant_id, pattern)
    except Exception:
        logger.warning("Report cache invalidation failed for tenant %s",
                       tenant_id, exc_info=True)
