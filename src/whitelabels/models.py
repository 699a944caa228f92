"""Tenant model: every CRM record belongs to one whitelabel."""
from django.db import models

from core.models import TimeStampedModel


class Whitelabel(TimeStampedModel):
    """A tenant of the CRM (one company running its own sales team)."""

    class BusinessModel(models.TextChoices):
        TCV = "TCV", "Valeur totale du contrat (TCV)"
        MRR = "MRR", "Revenu mensuel recurrent (MRR)"

    name = models.CharField("nom", max_length=255)
    code = models.SlugField("code", max_length=50, unique=True)
    currency = models.CharField("devise", max_length=3, default="BRL")
    locale = models.CharField("langue d'affichage", max_length=10, default="pt-BR")
    business_model = models.CharField(
        "modele economique",
        max_length=3,
        choices=BusinessModel.choices,
        default=BusinessModel.TCV,
        help_text="TCV: la vente compte pour sa valeur totale. MRR: valeur / duree.",
    )
    is_active = models.BooleanField("actif", default=True)

    class Meta:
        ordering = ["name"]
        verbose_name = "whitelabel"
        verbose_name_plural = "whitelabels"

    def __str__(self):
        return self.name
