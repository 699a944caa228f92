"""Signals: refresh commission snapshots when deals are won or meetings held."""
from __future__ import annotations

import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone

logger = logging.getLogger(__name__)


def _get_period(dt) -> str:
    if dt is None:
        dt = timezone.now()
    return timezone.localtime(dt).strftime("%Y-%m")


def _recompute_now(*, whitelabel_id, user_id, period: str) -> None:
    from commissions.services import CommissionService, parse_period

    year, month = parse_period(period)
    CommissionService(str(whitelabel_id)).snapshot_month(year, month, user_ids={str(user_id)})


def _queue_recompute(*, whitelabel_id, user_id, period: str) -> None:
    def _dispatch() -> None:
        queued = False
        try:
            from commissions.tasks import recompute_user_commission

            recompute_user_commission.delay(
                whitelabel_id=str(whitelabel_id),
                user_id=str(user_id),
                period=period,
            )
            queued = True
        except Exception as exc:
            logger.warning("commissions async dispatch failed: %s", exc, exc_info=True)

        if not queued:
            # Workers unreachable: keep the snapshot current in-process.
            try:
                _recompute_now(whitelabel_id=whitelabel_id, user_id=user_id, period=period)
            except Exception as exc:
                logger.error("commissions sync recompute failed: %s", exc, exc_info=True)

    transaction.on_commit(_dispatch)


@receiver(post_save, sender="crm.Deal")
def on_deal_saved(sender, instance, **kwargs):
    if instance.status != "won" or not instance.whitelabel_id:
        return
    period = _get_period(instance.sale_date)
    # The contact's closer is credited before the deal's, refresh both.
    contact_closer_id = instance.contact.closer_id if instance.contact_id else None
    for user_id in {instance.sdr_id, instance.closer_id, contact_closer_id} - {None}:
        _queue_recompute(whitelabel_id=instance.whitelabel_id, user_id=user_id, period=period)


@receiver(post_save, sender="crm.Meeting")
def on_meeting_saved(sender, instance, **kwargs):
    if instance.status != "completed" or not instance.sdr_id:
        return
    _queue_recompute(
        whitelabel_id=instance.whitelabel_id,
        user_id=instance.sdr_id,
        period=_get_period(instance.scheduled_at),
    )
