from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

PERCENT_VALIDATORS = [
    django.core.validators.MinValueValidator(Decimal("0")),
    django.core.validators.MaxValueValidator(Decimal("1000")),
]
AMOUNT_VALIDATORS = [django.core.validators.MinValueValidator(Decimal("0"))]


def percent_field(verbose_name, default):
    return models.DecimalField(
        decimal_places=2,
        default=Decimal(default),
        max_digits=7,
        validators=PERCENT_VALIDATORS,
        verbose_name=verbose_name,
    )


def amount_field(verbose_name, default):
    return models.DecimalField(
        decimal_places=2,
        default=Decimal(default),
        max_digits=14,
        validators=AMOUNT_VALIDATORS,
        verbose_name=verbose_name,
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("whitelabels", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CommissionSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                ("checkpoint_1_percent", percent_field("checkpoint 1 (% de la meta)", "50")),
                ("checkpoint_2_percent", percent_field("checkpoint 2 (% de la meta)", "75")),
                ("checkpoint_3_percent", percent_field("checkpoint 3 (% de la meta)", "100")),
                ("checkpoint_1_commission_percent", percent_field("commission au checkpoint 1 (%)", "50")),
                ("checkpoint_2_commission_percent", percent_field("commission au checkpoint 2 (%)", "75")),
                ("checkpoint_3_commission_percent", percent_field("commission au checkpoint 3 (%)", "100")),
                ("sdr_meeting_commission", amount_field("commission par reunion realisee", "50")),
                ("sdr_meetings_target", models.PositiveIntegerField(default=20, verbose_name="meta mensuelle de reunions")),
                ("sdr_bonus_closed_meeting", amount_field("bonus par reunion convertie", "100")),
                ("closer_fixed_commission", amount_field("commission fixe mensuelle", "0")),
                ("closer_per_sale_commission", amount_field("commission par vente", "0")),
                ("closer_commission_percent", percent_field("commission sur les ventes (%)", "10")),
                ("closer_sales_target", amount_field("meta mensuelle de ventes", "10000")),
                (
                    "whitelabel",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="commission_settings",
                        to="whitelabels.whitelabel",
                        verbose_name="whitelabel",
                    ),
                ),
            ],
            options={
                "verbose_name": "parametrage de commission",
                "verbose_name_plural": "parametrages de commission",
            },
        ),
        migrations.CreateModel(
            name="UserCommission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                (
                    "period_month",
                    models.PositiveSmallIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(12),
                        ],
                        verbose_name="mois",
                    ),
                ),
                ("period_year", models.PositiveSmallIntegerField(verbose_name="annee")),
                (
                    "user_role",
                    models.CharField(choices=[("sdr", "SDR"), ("closer", "Closer")], max_length=10, verbose_name="role"),
                ),
                ("meetings_held", models.PositiveIntegerField(default=0, verbose_name="reunions realisees")),
                ("meetings_converted", models.PositiveIntegerField(default=0, verbose_name="reunions converties")),
                ("total_sales", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14, verbose_name="ventes")),
                ("sales_count", models.PositiveIntegerField(default=0, verbose_name="nombre de ventes")),
                (
                    "base_commission",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14, verbose_name="commission de base"),
                ),
                (
                    "checkpoint_tier",
                    models.PositiveSmallIntegerField(
                        default=0,
                        validators=[django.core.validators.MaxValueValidator(3)],
                        verbose_name="checkpoint atteint",
                    ),
                ),
                (
                    "checkpoint_multiplier",
                    models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=6, verbose_name="multiplicateur"),
                ),
                (
                    "final_commission",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14, verbose_name="commission finale"),
                ),
                (
                    "target_achievement_percent",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=9, verbose_name="atteinte de la meta (%)"),
                ),
                ("is_final", models.BooleanField(default=False, verbose_name="cloture")),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="commissions",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="utilisateur",
                    ),
                ),
                (
                    "whitelabel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="user_commissions",
                        to="whitelabels.whitelabel",
                        verbose_name="whitelabel",
                    ),
                ),
            ],
            options={
                "verbose_name": "commission utilisateur",
                "verbose_name_plural": "commissions utilisateurs",
                "ordering": ["-period_year", "-period_month", "user__last_name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("whitelabel", "user", "period_year", "period_month"),
                        name="uniq_user_commission_period",
                    ),
                ],
            },
        ),
    ]
