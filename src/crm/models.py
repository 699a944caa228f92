"""CRM records consumed by the commission engine."""
from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


class Contact(TimeStampedModel):
    """A lead moving through the sales funnel."""

    class FunnelStage(models.TextChoices):
        NEW = "new", "Nouveau"
        CONTACTED = "contacted", "Contacte"
        MEETING = "meeting", "Reunion planifiee"
        NEGOTIATION = "negotiation", "Negociation"
        WON = "won", "Gagne"
        LOST = "lost", "Perdu"

    whitelabel = models.ForeignKey(
        "whitelabels.Whitelabel",
        on_delete=models.CASCADE,
        related_name="contacts",
        verbose_name="whitelabel",
    )
    name = models.CharField("nom", max_length=255)
    email = models.EmailField("email", blank=True, default="")
    phone = models.CharField("telephone", max_length=30, blank=True, default="")
    funnel_stage = models.CharField(
        "etape du funnel",
        max_length=20,
        choices=FunnelStage.choices,
        default=FunnelStage.NEW,
        db_index=True,
    )
    sdr = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sourced_contacts",
        verbose_name="SDR",
    )
    closer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="closing_contacts",
        verbose_name="closer",
    )
    meeting_date = models.DateTimeField("date de reunion", null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "contact"
        verbose_name_plural = "contacts"

    def __str__(self):
        return self.name


class Deal(TimeStampedModel):
    """A sales opportunity. Only ``won`` deals count toward commissions."""

    class Status(models.TextChoices):
        OPEN = "open", "Ouvert"
        WON = "won", "Gagne"
        LOST = "lost", "Perdu"

    whitelabel = models.ForeignKey(
        "whitelabels.Whitelabel",
        on_delete=models.CASCADE,
        related_name="deals",
        verbose_name="whitelabel",
    )
    contact = models.ForeignKey(
        Contact,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="deals",
        verbose_name="contact",
        help_text="Un deal sans contact est ignore dans le calcul des commissions.",
    )
    title = models.CharField("titre", max_length=255)
    value = models.DecimalField(
        "valeur",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    duration = models.PositiveIntegerField(
        "duree",
        null=True,
        blank=True,
        help_text="Duree du contrat. En modele MRR la valeur est divisee par cette duree.",
    )
    status = models.CharField(
        "statut",
        max_length=10,
        choices=Status.choices,
        default=Status.OPEN,
        db_index=True,
    )
    sdr = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sourced_deals",
        verbose_name="SDR",
    )
    closer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="closed_deals",
        verbose_name="closer",
    )
    sale_date = models.DateTimeField("date de vente", null=True, blank=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "deal"
        verbose_name_plural = "deals"
        indexes = [
            models.Index(fields=["whitelabel", "status", "sale_date"], name="deal_wl_status_sale_idx"),
        ]

    def __str__(self):
        return f"{self.title} ({self.get_status_display()})"

    def to_record(self):
        from commissions.records import DealRecord

        return DealRecord(
            id=str(self.pk),
            value=self.value,
            status=self.status,
            duration=self.duration,
            sdr_id=str(self.sdr_id) if self.sdr_id else None,
            closer_id=str(self.closer_id) if self.closer_id else None,
            contact_id=str(self.contact_id) if self.contact_id else None,
            sale_date=self.sale_date,
        )


class Meeting(TimeStampedModel):
    """A prospecting meeting held by an SDR."""

    class Status(models.TextChoices):
        SCHEDULED = "scheduled", "Planifiee"
        COMPLETED = "completed", "Realisee"
        CANCELLED = "cancelled", "Annulee"
        NO_SHOW = "no-show", "Absence"

    whitelabel = models.ForeignKey(
        "whitelabels.Whitelabel",
        on_delete=models.CASCADE,
        related_name="meetings",
        verbose_name="whitelabel",
    )
    sdr = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="meetings",
        verbose_name="SDR",
    )
    contact = models.ForeignKey(
        Contact,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="meetings",
        verbose_name="contact",
    )
    deal = models.ForeignKey(
        Deal,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="meetings",
        verbose_name="deal",
    )
    title = models.CharField("titre", max_length=255)
    scheduled_at = models.DateTimeField("planifiee le", db_index=True)
    completed_at = models.DateTimeField("realisee le", null=True, blank=True)
    status = models.CharField(
        "statut",
        max_length=10,
        choices=Status.choices,
        default=Status.SCHEDULED,
        db_index=True,
    )
    converted_to_sale = models.BooleanField("convertie en vente", default=False)
    notes = models.TextField("notes", blank=True, default="")

    class Meta:
        ordering = ["-scheduled_at"]
        verbose_name = "reunion"
        verbose_name_plural = "reunions"

    def __str__(self):
        return f"{self.title} - {self.get_status_display()}"

    def to_record(self):
        from commissions.records import ActivityRecord

        return ActivityRecord(
            id=str(self.pk),
            sdr_id=str(self.sdr_id) if self.sdr_id else None,
            status=self.status,
            converted_to_sale=self.converted_to_sale,
            scheduled_at=self.scheduled_at,
            completed_at=self.completed_at,
            contact_id=str(self.contact_id) if self.contact_id else None,
        )
