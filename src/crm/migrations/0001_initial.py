from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("whitelabels", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Contact",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                ("name", models.CharField(max_length=255, verbose_name="nom")),
                ("email", models.EmailField(blank=True, default="", max_length=254, verbose_name="email")),
                ("phone", models.CharField(blank=True, default="", max_length=30, verbose_name="telephone")),
                (
                    "funnel_stage",
                    models.CharField(
                        choices=[
                            ("new", "Nouveau"),
                            ("contacted", "Contacte"),
                            ("meeting", "Reunion planifiee"),
                            ("negotiation", "Negociation"),
                            ("won", "Gagne"),
                            ("lost", "Perdu"),
                        ],
                        db_index=True,
                        default="new",
                        max_length=20,
                        verbose_name="etape du funnel",
                    ),
                ),
                ("meeting_date", models.DateTimeField(blank=True, null=True, verbose_name="date de reunion")),
                (
                    "closer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="closing_contacts",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="closer",
                    ),
                ),
                (
                    "sdr",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sourced_contacts",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="SDR",
                    ),
                ),
                (
                    "whitelabel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="contacts",
                        to="whitelabels.whitelabel",
                        verbose_name="whitelabel",
                    ),
                ),
            ],
            options={
                "verbose_name": "contact",
                "verbose_name_plural": "contacts",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Deal",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                ("title", models.CharField(max_length=255, verbose_name="titre")),
                (
                    "value",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="valeur",
                    ),
                ),
                (
                    "duration",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Duree du contrat. En modele MRR la valeur est divisee par cette duree.",
                        null=True,
                        verbose_name="duree",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("open", "Ouvert"), ("won", "Gagne"), ("lost", "Perdu")],
                        db_index=True,
                        default="open",
                        max_length=10,
                        verbose_name="statut",
                    ),
                ),
                ("sale_date", models.DateTimeField(blank=True, db_index=True, null=True, verbose_name="date de vente")),
                (
                    "closer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="closed_deals",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="closer",
                    ),
                ),
                (
                    "contact",
                    models.ForeignKey(
                        blank=True,
                        help_text="Un deal sans contact est ignore dans le calcul des commissions.",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="deals",
                        to="crm.contact",
                        verbose_name="contact",
                    ),
                ),
                (
                    "sdr",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sourced_deals",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="SDR",
                    ),
                ),
                (
                    "whitelabel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="deals",
                        to="whitelabels.whitelabel",
                        verbose_name="whitelabel",
                    ),
                ),
            ],
            options={
                "verbose_name": "deal",
                "verbose_name_plural": "deals",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["whitelabel", "status", "sale_date"], name="deal_wl_status_sale_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Meeting",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                ("title", models.CharField(max_length=255, verbose_name="titre")),
                ("scheduled_at", models.DateTimeField(db_index=True, verbose_name="planifiee le")),
                ("completed_at", models.DateTimeField(blank=True, null=True, verbose_name="realisee le")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("scheduled", "Planifiee"),
                            ("completed", "Realisee"),
                            ("cancelled", "Annulee"),
                            ("no-show", "Absence"),
                        ],
                        db_index=True,
                        default="scheduled",
                        max_length=10,
                        verbose_name="statut",
                    ),
                ),
                ("converted_to_sale", models.BooleanField(default=False, verbose_name="convertie en vente")),
                ("notes", models.TextField(blank=True, default="", verbose_name="notes")),
                (
                    "contact",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="meetings",
                        to="crm.contact",
                        verbose_name="contact",
                    ),
                ),
                (
                    "deal",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="meetings",
                        to="crm.deal",
                        verbose_name="deal",
                    ),
                ),
                (
                    "sdr",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="meetings",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="SDR",
                    ),
                ),
                (
                    "whitelabel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="meetings",
                        to="whitelabels.whitelabel",
                        verbose_name="whitelabel",
                    ),
                ),
            ],
            options={
                "verbose_name": "reunion",
                "verbose_name_plural": "reunions",
                "ordering": ["-scheduled_at"],
            },
        ),
    ]
