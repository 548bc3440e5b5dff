from celery import shared_task


@shared_task  # register this function as a Celery task
def invalidate_report_cache(tenant_id, pattern):
    # import lazily to avoid loading the cache layer at worker import time
    from .cache import clear_report_cache

    return clear_report_cache(tenant_id, pattern)
