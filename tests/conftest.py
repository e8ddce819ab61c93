import pytest

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.catalog.models import (
    ClassGroupAssignment,
    GroupType,
    Item,
    ItemGroup,
    School,
    SchoolClass,
)
from modules.configuration.constants import DEFAULTS
from modules.configuration.models import Setting


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def auth_client():
    """APIClient with a force-authenticated operator."""
    client = APIClient()
    user = get_user_model().objects.create_user(
        username="operator", password="testpass123"
    )
    client.force_authenticate(user=user)
    return client


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def default_settings():
    for key, value in DEFAULTS.items():
        Setting.objects.update_or_create(key=key, defaults={"value": value})
    return dict(DEFAULTS)


@pytest.fixture()
def school():
    return School.objects.create(
        name="Green Valley School",
        code="1234",
        address="1 School Road, Pune",
    )


@pytest.fixture()
def school_class(school):
    return SchoolClass.objects.create(school=school, name="Class 1", sort_order=1)


@pytest.fixture()
def books_group(school_class):
    group = ItemGroup.objects.create(name="Class 1 Books", type=GroupType.BOOKS)
    ClassGroupAssignment.objects.create(school_class=school_class, group=group)
    return group


@pytest.fixture()
def books(books_group):
    """Four active books; the first three (by title) end up in conversation orders."""
    specs = [
        ("Art Book", 10000, 200),
        ("English Reader", 24000, 300),
        ("Maths Workbook", 18000, 250),
        ("Science Primer", 21000, 280),
    ]
    return [
        Item.objects.create(
            group=books_group,
            title=title,
            price_paise=price,
            stock=10,
            weight_grams=weight,
            length_cm=20,
            width_cm=15,
            height_cm=2,
        )
        for title, price, weight in specs
    ]


@pytest.fixture()
def notebook():
    return Item.objects.create(
        title="Notebook",
        price_paise=6000,
        stock=5,
        weight_grams=200,
        length_cm=20,
        width_cm=15,
        height_cm=2,
    )
