"""
Intake form validation tests.
"""
import pytest
from pydantic import ValidationError

from planpdf.schemas.intake import BusinessPlanForm, DeliveryMethod, OfferingType

from conftest import valid_form


def test_valid_form_parses_camel_case():
    form = BusinessPlanForm.model_validate(valid_form())

    assert form.business_name == "Cloud Kitchen Co"
    assert form.offering_type == OfferingType.PRODUCTS
    assert form.delivery_method == DeliveryMethod.ONLINE
    assert form.customer_groups[0].income_level == "middle"


def test_payload_uses_client_field_names():
    payload = BusinessPlanForm.model_validate(valid_form()).to_payload()

    assert payload["businessName"] == "Cloud Kitchen Co"
    assert payload["deliveryMethod"] == "online"
    assert payload["productsServices"] == [{"name": "Lunch boxes", "description": "Daily menu"}]


@pytest.mark.parametrize("overrides", [
    {"businessName": "   "},
    {"businessDescription": ""},
    {"offeringType": "software"},
    {"deliveryMethod": "teleport"},
    {"customerGroups": []},
    {"customerGroups": [{"description": " "}]},
    {"productsServices": []},
    {"productsServices": [{"name": ""}]},
    {"customerGroups": [{"description": f"group {i}"} for i in range(4)]},
    {"productsServices": [{"name": f"item {i}"} for i in range(6)]},
    {"firstYearRevenue": -1},
])
def test_invalid_forms_are_rejected(overrides):
    with pytest.raises(ValidationError):
        BusinessPlanForm.model_validate(valid_form(**overrides))


def test_missing_required_field_is_rejected():
    form = valid_form()
    del form["customerLocation"]

    with pytest.raises(ValidationError):
        BusinessPlanForm.model_validate(form)


def test_blank_success_drivers_are_dropped():
    form = BusinessPlanForm.model_validate(valid_form(successDrivers=["Fast delivery", " ", ""]))

    assert form.success_drivers == ["Fast delivery"]


def test_snake_case_names_are_accepted():
    data = {
        "business_name": "Acme",
        "business_description": "Widgets",
        "number_of_employees": "1",
        "customer_location": "Pune",
        "offering_type": "services",
        "delivery_method": "hybrid",
        "customer_groups": [{"description": "Shops"}],
        "products_services": [{"name": "Repairs"}],
    }

    assert BusinessPlanForm.model_validate(data).offering_type == OfferingType.SERVICES
