from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Whitelabel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                ("name", models.CharField(max_length=255, verbose_name="nom")),
                ("code", models.SlugField(unique=True, verbose_name="code")),
                ("currency", models.CharField(default="BRL", max_length=3, verbose_name="devise")),
                ("locale", models.CharField(default="pt-BR", max_length=10, verbose_name="langue d'affichage")),
                (
                    "business_model",
                    models.CharField(
                        choices=[("TCV", "Valeur totale du contrat (TCV)"), ("MRR", "Revenu mensuel recurrent (MRR)")],
                        default="TCV",
                        help_text="TCV: la vente compte pour sa valeur totale. MRR: valeur / duree.",
                        max_length=3,
                        verbose_name="modele economique",
                    ),
                ),
                ("is_active", models.BooleanField(default=True, verbose_name="actif")),
            ],
            options={
                "verbose_name": "whitelabel",
                "verbose_name_plural": "whitelabels",
                "ordering": ["name"],
            },
        ),
    ]
