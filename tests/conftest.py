from datetime import datetime
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import User
from commissions.models import CommissionSettings
from whitelabels.models import Whitelabel


@pytest.fixture
def whitelabel(db):
    return Whitelabel.objects.create(
        name="Agence Test",
        code="agence-test",
        currency="BRL",
        locale="pt-BR",
        business_model=Whitelabel.BusinessModel.TCV,
    )


@pytest.fixture
def other_whitelabel(db):
    return Whitelabel.objects.create(name="Autre Agence", code="autre-agence")


@pytest.fixture
def admin_user(db, whitelabel):
    return User.objects.create_user(
        email="admin@test.com",
        password="testpass123",
        first_name="Admin",
        last_name="User",
        role=User.Role.ADMIN,
        whitelabel=whitelabel,
    )


@pytest.fixture
def manager_user(db, whitelabel):
    return User.objects.create_user(
        email="manager@test.com",
        password="testpass123",
        first_name="Manager",
        last_name="User",
        role=User.Role.MANAGER,
        whitelabel=whitelabel,
    )


@pytest.fixture
def sdr_user(db, whitelabel):
    return User.objects.create_user(
        email="sdr@test.com",
        password="testpass123",
        first_name="Sdr",
        last_name="User",
        role=User.Role.SDR,
        whitelabel=whitelabel,
    )


@pytest.fixture
def closer_user(db, whitelabel):
    return User.objects.create_user(
        email="closer@test.com",
        password="testpass123",
        first_name="Closer",
        last_name="User",
        role=User.Role.CLOSER,
        whitelabel=whitelabel,
    )


@pytest.fixture
def orphan_user(db):
    """Authenticated user attached to no whitelabel."""
    return User.objects.create_user(
        email="orphan@test.com",
        password="testpass123",
        first_name="Sans",
        last_name="Whitelabel",
        role=User.Role.SDR,
    )


@pytest.fixture
def commission_settings(db, whitelabel):
    return CommissionSettings.objects.create(
        whitelabel=whitelabel,
        sdr_meeting_commission=Decimal("50"),
        sdr_bonus_closed_meeting=Decimal("100"),
        sdr_meetings_target=20,
        closer_commission_percent=Decimal("10"),
        closer_sales_target=Decimal("10000"),
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def period_start():
    """Aware datetime on the 10th of March 2026, inside a closed period."""
    return timezone.make_aware(datetime(2026, 3, 10, 10, 0))


@pytest.fixture
def march_activity(whitelabel, sdr_user, closer_user, commission_settings, period_start):
    """SDR with 16 completed meetings (4 converted), closer with 12000 won over 3 deals."""
    from datetime import timedelta

    from crm.models import Contact, Deal, Meeting

    contact = Contact.objects.create(
        whitelabel=whitelabel, name="Lead Alpha", sdr=sdr_user, closer=closer_user,
    )
    for i in range(16):
        Meeting.objects.create(
            whitelabel=whitelabel,
            sdr=sdr_user,
            contact=contact,
            title=f"Reunion {i}",
            scheduled_at=period_start + timedelta(hours=i),
            completed_at=period_start + timedelta(hours=i, minutes=30),
            status=Meeting.Status.COMPLETED,
            converted_to_sale=i < 4,
        )
    Meeting.objects.create(
        whitelabel=whitelabel,
        sdr=sdr_user,
        title="Annulee",
        scheduled_at=period_start,
        status=Meeting.Status.CANCELLED,
    )
    for value in ("4000", "5000", "3000"):
        Deal.objects.create(
            whitelabel=whitelabel,
            contact=contact,
            title=f"Deal {value}",
            value=Decimal(value),
            status=Deal.Status.WON,
            sdr=sdr_user,
            closer=closer_user,
            sale_date=period_start + timedelta(days=1),
        )
    # Orphan deal: never commissioned
    Deal.objects.create(
        whitelabel=whitelabel,
        title="Orphelin",
        value=Decimal("90000"),
        status=Deal.Status.WON,
        closer=closer_user,
        sale_date=period_start + timedelta(days=2),
    )
    return contact
