import pytest

from commissions.services import CommissionService


@pytest.mark.django_db
def test_meeting_list_is_paginated(api_client, sdr_user, march_activity):
    api_client.force_authenticate(sdr_user)

    response = api_client.get("/api/v1/commissions/meetings/", {"page_size": 5})

    payload = response.json()
    assert payload["count"] == 17
    assert payload["total_pages"] == 4
    assert len(payload["results"]) == 5
    assert payload["previous"] is None


@pytest.mark.django_db
def test_page_size_is_capped(api_client, manager_user, whitelabel, march_activity):
    CommissionService(str(whitelabel.pk)).snapshot_month(2026, 3)
    api_client.force_authenticate(manager_user)

    response = api_client.get("/api/v1/commissions/user-commissions/", {"page_size": 10000})

    payload = response.json()
    assert payload["total_pages"] == 1
    assert payload["count"] == 2
