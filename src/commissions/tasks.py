"""Celery tasks for the commissions module."""
from __future__ import annotations

import logging

from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=30)
def recompute_user_commission(self, *, whitelabel_id: str, user_id: str, period: str):
    """Rewrite the UserCommission row of one employee for a period."""
    from commissions.repository import CommissionSettingsNotFound
    from commissions.services import CommissionService, parse_period

    year, month = parse_period(period)
    try:
        service = CommissionService(whitelabel_id)
        written = service.snapshot_month(year, month, user_ids={str(user_id)})
        logger.info(
            "Recomputed commission user=%s period=%s rows=%d", user_id, period, written
        )
        return written
    except CommissionSettingsNotFound:
        logger.warning("recompute_user_commission: no settings for whitelabel=%s", whitelabel_id)
        return 0
    except Exception as exc:
        logger.exception("recompute_user_commission failed: %s", exc)
        raise self.retry(exc=exc)


@shared_task
def snapshot_whitelabel_month(*, whitelabel_id: str, period: str):
    """Recompute rows for ALL commissioned employees of a whitelabel."""
    from commissions.services import CommissionService, parse_period

    year, month = parse_period(period)
    written = CommissionService(whitelabel_id).snapshot_month(year, month)
    logger.info(
        "Snapshot whitelabel month whitelabel=%s period=%s (%d rows)",
        whitelabel_id,
        period,
        written,
    )
    return written


@shared_task
def close_month_commissions():
    """
    Scheduled daily (Celery Beat). Only runs logic on the 1st of each month.
    Recompute the previous month one last time and freeze its rows.
    """
    from commissions.models import CommissionSettings
    from commissions.services import CommissionService, previous_period

    today = timezone.localdate()
    if today.day != 1:
        logger.debug("close_month_commissions: skipping (today is day %d)", today.day)
        return 0

    year, month = previous_period(today)
    whitelabel_ids = CommissionSettings.objects.filter(
        whitelabel__is_active=True,
    ).values_list("whitelabel_id", flat=True)

    closed = 0
    for whitelabel_id in whitelabel_ids:
        try:
            closed += CommissionService(str(whitelabel_id)).snapshot_month(year, month, final=True)
        except Exception as exc:
            logger.warning("Commission close failed whitelabel=%s: %s", whitelabel_id, exc)

    logger.info("Closed %d commission rows for period %d-%02d", closed, year, month)
    return closed
