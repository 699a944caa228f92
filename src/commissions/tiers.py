"""Checkpoint tiers: map an achievement percentage to a payout multiplier.

Tiers are evaluated from the highest threshold down and the first match wins.
Below checkpoint 1 nothing is paid (multiplier 0), even when a base
commission was earned.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from commissions.records import HUNDRED, ZERO, CommissionPolicy, to_decimal

CHECKPOINT_LABELS = {
    0: "Below Checkpoint 1",
    1: "Checkpoint 1",
    2: "Checkpoint 2",
    3: "Checkpoint 3",
}


@dataclass(frozen=True)
class CheckpointResult:
    tier: int
    multiplier: Decimal


@dataclass(frozen=True)
class NextCheckpoint:
    next_tier: int
    next_threshold: Decimal
    percentage_needed: Decimal


def _checkpoints(policy: CommissionPolicy) -> list[tuple[int, Decimal, Decimal]]:
    """(tier, threshold, multiplier %) ordered from the highest tier down."""
    return [
        (3, policy.checkpoint_3_percent, policy.checkpoint_3_commission_percent),
        (2, policy.checkpoint_2_percent, policy.checkpoint_2_commission_percent),
        (1, policy.checkpoint_1_percent, policy.checkpoint_1_commission_percent),
    ]


def achievement_percent(current, target) -> Decimal:
    """``current / target * 100``, uncapped; 0 when there is no target."""
    target = to_decimal(target)
    if target <= 0:
        return ZERO
    return to_decimal(current) / target * HUNDRED


def resolve_checkpoint_tier(achievement, policy: CommissionPolicy) -> CheckpointResult:
    achievement = to_decimal(achievement)
    for tier, threshold, commission_percent in _checkpoints(policy):
        if achievement >= threshold:
            return CheckpointResult(tier=tier, multiplier=commission_percent / HUNDRED)
    return CheckpointResult(tier=0, multiplier=ZERO)


def next_checkpoint(achievement, policy: CommissionPolicy) -> NextCheckpoint | None:
    """The closest checkpoint still ahead, or None once tier 3 is reached."""
    achievement = to_decimal(achievement)
    for tier, threshold, _ in reversed(_checkpoints(policy)):
        if achievement < threshold:
            return NextCheckpoint(
                next_tier=tier,
                next_threshold=threshold,
                percentage_needed=threshold - achievement,
            )
    return None


def checkpoint_label(tier: int) -> str:
    return CHECKPOINT_LABELS.get(tier, "Unknown")
