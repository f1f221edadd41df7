"""
Business-plan intake form.

Field names follow the web client (camelCase); Python code uses the
snake_case attribute names.
"""
import enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_CUSTOMER_GROUPS = 3
MAX_PRODUCTS_SERVICES = 5


class OfferingType(str, enum.Enum):
    PRODUCTS = "products"
    SERVICES = "services"


class DeliveryMethod(str, enum.Enum):
    PHYSICAL_STORE = "physical-store"
    ONLINE = "online"
    HYBRID = "hybrid"
    DIRECT_SALES = "direct-sales"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True
    )


class CustomerGroup(CamelModel):
    description: str = Field(min_length=1)
    income_level: str | None = None


class ProductService(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None


class Investment(CamelModel):
    item: str
    amount: float = Field(ge=0)


class BusinessPlanForm(CamelModel):
    """
    Intake form snapshot sent to the generation workflow.

    Required fields are the ones the workflow cannot write a plan
    without; the rest refine the output.
    """
    # Basics
    privacy_accepted: bool = False
    business_name: str = Field(min_length=1, max_length=200)
    business_description: str = Field(min_length=1)
    business_type: str | None = None
    number_of_employees: str = Field(min_length=1)
    customer_location: str = Field(min_length=1)
    offering_type: OfferingType
    delivery_method: DeliveryMethod

    # Objective
    plan_purpose: str | None = None
    plan_language: str | None = None

    # Customers and offering
    customer_groups: list[CustomerGroup] = Field(min_length=1, max_length=MAX_CUSTOMER_GROUPS)
    products_services: list[ProductService] = Field(min_length=1, max_length=MAX_PRODUCTS_SERVICES)

    # Success drivers
    success_drivers: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)

    # Financials
    plan_currency: str | None = None
    investments: list[Investment] = Field(default_factory=list)
    first_year_revenue: float | None = Field(default=None, ge=0)
    yearly_growth: float | None = None
    operations_costs: float | None = Field(default=None, ge=0)

    @field_validator("success_drivers", "weaknesses")
    @classmethod
    def drop_blank_entries(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item and item.strip()]

    def to_payload(self) -> dict:
        """JSON-ready dict in the client's camelCase shape."""
        return self.model_dump(mode="json", by_alias=True)
