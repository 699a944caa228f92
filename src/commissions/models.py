"""Models for the commissions module."""
from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from commissions.records import CommissionPolicy
from core.models import TimeStampedModel

_PERCENT_VALIDATORS = [MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("1000"))]
_AMOUNT_VALIDATORS = [MinValueValidator(Decimal("0"))]


def _percent_field(verbose_name: str, default: str, **kwargs):
    return models.DecimalField(
        verbose_name,
        max_digits=7,
        decimal_places=2,
        default=Decimal(default),
        validators=_PERCENT_VALIDATORS,
        **kwargs,
    )


def _amount_field(verbose_name: str, default: str, **kwargs):
    return models.DecimalField(
        verbose_name,
        max_digits=14,
        decimal_places=2,
        default=Decimal(default),
        validators=_AMOUNT_VALIDATORS,
        **kwargs,
    )


class CommissionSettings(TimeStampedModel):
    """Tiered commission policy of a whitelabel.

    Thresholds are achievement percentages of the monthly target; the matching
    ``*_commission_percent`` is the share of the base commission paid once the
    threshold is reached. Below checkpoint 1 nothing is paid.
    """

    whitelabel = models.OneToOneField(
        "whitelabels.Whitelabel",
        on_delete=models.CASCADE,
        related_name="commission_settings",
        verbose_name="whitelabel",
    )

    # Checkpoints
    checkpoint_1_percent = _percent_field("checkpoint 1 (% de la meta)", "50")
    checkpoint_2_percent = _percent_field("checkpoint 2 (% de la meta)", "75")
    checkpoint_3_percent = _percent_field("checkpoint 3 (% de la meta)", "100")
    checkpoint_1_commission_percent = _percent_field("commission au checkpoint 1 (%)", "50")
    checkpoint_2_commission_percent = _percent_field("commission au checkpoint 2 (%)", "75")
    checkpoint_3_commission_percent = _percent_field("commission au checkpoint 3 (%)", "100")

    # SDR
    sdr_meeting_commission = _amount_field("commission par reunion realisee", "50")
    sdr_meetings_target = models.PositiveIntegerField("meta mensuelle de reunions", default=20)
    sdr_bonus_closed_meeting = _amount_field("bonus par reunion convertie", "100")

    # Closer
    closer_fixed_commission = _amount_field("commission fixe mensuelle", "0")
    closer_per_sale_commission = _amount_field("commission par vente", "0")
    closer_commission_percent = _percent_field("commission sur les ventes (%)", "10")
    closer_sales_target = _amount_field("meta mensuelle de ventes", "10000")

    class Meta:
        verbose_name = "parametrage de commission"
        verbose_name_plural = "parametrages de commission"

    def __str__(self) -> str:
        return f"Commissions {self.whitelabel}"

    def clean(self) -> None:
        if not (self.checkpoint_1_percent < self.checkpoint_2_percent < self.checkpoint_3_percent):
            raise ValidationError(
                "Les checkpoints doivent etre strictement croissants (1 < 2 < 3)."
            )

    def to_policy(self) -> CommissionPolicy:
        """Immutable snapshot handed to the engine for one computation pass."""
        return CommissionPolicy(
            checkpoint_1_percent=self.checkpoint_1_percent,
            checkpoint_2_percent=self.checkpoint_2_percent,
            checkpoint_3_percent=self.checkpoint_3_percent,
            checkpoint_1_commission_percent=self.checkpoint_1_commission_percent,
            checkpoint_2_commission_percent=self.checkpoint_2_commission_percent,
            checkpoint_3_commission_percent=self.checkpoint_3_commission_percent,
            sdr_meeting_commission=self.sdr_meeting_commission,
            sdr_meetings_target=self.sdr_meetings_target,
            sdr_bonus_closed_meeting=self.sdr_bonus_closed_meeting,
            closer_fixed_commission=self.closer_fixed_commission or Decimal("0"),
            closer_per_sale_commission=self.closer_per_sale_commission or Decimal("0"),
            closer_commission_percent=self.closer_commission_percent,
            closer_sales_target=self.closer_sales_target,
        )


class UserCommission(TimeStampedModel):
    """Monthly commission snapshot of one employee.

    Rows are rewritten while the month is open and frozen (``is_final``) by
    the monthly close task.
    """

    class UserRole(models.TextChoices):
        SDR = "sdr", "SDR"
        CLOSER = "closer", "Closer"

    whitelabel = models.ForeignKey(
        "whitelabels.Whitelabel",
        on_delete=models.CASCADE,
        related_name="user_commissions",
        verbose_name="whitelabel",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="commissions",
        verbose_name="utilisateur",
    )
    period_month = models.PositiveSmallIntegerField(
        "mois", validators=[MinValueValidator(1), MaxValueValidator(12)],
    )
    period_year = models.PositiveSmallIntegerField("annee")
    user_role = models.CharField("role", max_length=10, choices=UserRole.choices)

    meetings_held = models.PositiveIntegerField("reunions realisees", default=0)
    meetings_converted = models.PositiveIntegerField("reunions converties", default=0)
    total_sales = models.DecimalField(
        "ventes", max_digits=14, decimal_places=2, default=Decimal("0"),
    )
    sales_count = models.PositiveIntegerField("nombre de ventes", default=0)

    base_commission = models.DecimalField(
        "commission de base", max_digits=14, decimal_places=2, default=Decimal("0"),
    )
    checkpoint_tier = models.PositiveSmallIntegerField(
        "checkpoint atteint", default=0, validators=[MaxValueValidator(3)],
    )
    checkpoint_multiplier = models.DecimalField(
        "multiplicateur", max_digits=6, decimal_places=4, default=Decimal("0"),
    )
    final_commission = models.DecimalField(
        "commission finale", max_digits=14, decimal_places=2, default=Decimal("0"),
    )
    target_achievement_percent = models.DecimalField(
        "atteinte de la meta (%)", max_digits=9, decimal_places=2, default=Decimal("0"),
    )
    is_final = models.BooleanField("cloture", default=False)

    class Meta:
        verbose_name = "commission utilisateur"
        verbose_name_plural = "commissions utilisateurs"
        ordering = ["-period_year", "-period_month", "user__last_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["whitelabel", "user", "period_year", "period_month"],
                name="uniq_user_commission_period",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user} {self.period_year}-{self.period_month:02d}"

    @property
    def period(self) -> str:
        return f"{self.period_year}-{self.period_month:02d}"
