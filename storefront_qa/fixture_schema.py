"""Fixture records loaded from the version-controlled manifests.

Each record knows its natural key (the field used to detect remote existence)
and how to render itself as the admin REST API create payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any


class Tier(str, Enum):
    """Test-suite scope: A = smoke/PR, B = regression (default), C = full."""

    A = "A"
    B = "B"
    C = "C"


DEFAULT_TIER = Tier.B


class FixtureKind(str, Enum):
    PRODUCT = "product"
    CUSTOMER = "customer"
    COUPON = "coupon"


# Platform defaults used when a manifest entry leaves a field unspecified.
DEFAULT_ATTRIBUTE_SET_ID = 4
DEFAULT_TAX_CLASS_ID = "2"
VISIBILITY_CATALOG_SEARCH = 4
STATUS_ENABLED = 1
STATUS_DISABLED = 2

COUPON_USES_PER_COUPON = 1000
COUPON_USES_PER_CUSTOMER = 100
COUPON_FROM_DATE = "2024-01-01"
COUPON_TO_DATE = "2030-12-31"
COUPON_WEBSITE_IDS = (1,)
COUPON_CUSTOMER_GROUP_IDS = (0, 1, 2, 3)

_DISCOUNT_ACTIONS = {
    "percentage": "by_percent",
    "fixed": "cart_fixed",
}


def _parse_tiers(raw: Any) -> frozenset[Tier]:
    return frozenset(Tier(str(value).upper()) for value in (raw or []))


@dataclass(frozen=True)
class ProductFixture:
    """Simple catalog product seeded through ``POST /V1/products``."""

    id: str
    sku: str
    name: str
    price: Decimal
    qty: int
    tier: frozenset[Tier]
    type: str = "simple"
    status: str | None = None
    visibility: str | None = None
    description: str | None = None
    short_description: str | None = None

    kind = FixtureKind.PRODUCT

    @property
    def natural_key(self) -> str:
        return self.sku

    @property
    def url_key(self) -> str:
        """Storefront URL key: ``TEST_SIMPLE_001`` -> ``test-simple-001``."""
        return self.sku.lower().replace("_", "-")

    @property
    def in_stock(self) -> bool:
        return self.qty > 0

    def in_tier(self, tier: Tier) -> bool:
        return tier in self.tier

    def to_payload(self) -> dict[str, Any]:
        """Render the ``{"product": ...}`` create request body."""
        return {
            "product": {
                "sku": self.sku,
                "name": self.name,
                "attribute_set_id": DEFAULT_ATTRIBUTE_SET_ID,
                "price": float(self.price),
                "status": STATUS_DISABLED if self.status == "disabled" else STATUS_ENABLED,
                "visibility": VISIBILITY_CATALOG_SEARCH,
                "type_id": self.type or "simple",
                "weight": 1,
                "extension_attributes": {
                    "stock_item": {
                        "qty": self.qty,
                        "is_in_stock": self.in_stock,
                    },
                },
                "custom_attributes": [
                    {"attribute_code": "tax_class_id", "value": DEFAULT_TAX_CLASS_ID},
                    {
                        "attribute_code": "description",
                        "value": self.description or f"Test product: {self.name}",
                    },
                    {
                        "attribute_code": "short_description",
                        "value": self.short_description or self.name,
                    },
                ],
            }
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ProductFixture":
        return cls(
            id=payload["id"],
            sku=payload["sku"],
            name=payload["name"],
            price=Decimal(str(payload["price"])),
            qty=int(payload.get("qty", 0)),
            tier=_parse_tiers(payload.get("tier")),
            type=payload.get("type", "simple"),
            status=payload.get("status"),
            visibility=payload.get("visibility"),
            description=payload.get("description"),
            short_description=payload.get("shortDescription", payload.get("short_description")),
        )


@dataclass(frozen=True)
class CustomerAddress:
    """Address entry; ``type`` may name ``shipping``, ``billing`` or both."""

    type: str
    street: str
    city: str
    postcode: str
    country: str
    telephone: str
    firstname: str | None = None
    lastname: str | None = None
    region: str | None = None

    @property
    def is_default_shipping(self) -> bool:
        return "shipping" in self.type

    @property
    def is_default_billing(self) -> bool:
        return "billing" in self.type

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "CustomerAddress":
        return cls(
            type=payload.get("type", ""),
            street=payload["street"],
            city=payload["city"],
            postcode=payload["postcode"],
            country=payload["country"],
            telephone=payload["telephone"],
            firstname=payload.get("firstname"),
            lastname=payload.get("lastname"),
            region=payload.get("region"),
        )


@dataclass(frozen=True)
class CustomerFixture:
    """Storefront customer account seeded through ``POST /V1/customers``."""

    id: str
    email: str
    password: str
    firstname: str
    lastname: str
    tier: frozenset[Tier]
    addresses: tuple[CustomerAddress, ...] = field(default_factory=tuple)

    kind = FixtureKind.CUSTOMER

    @property
    def natural_key(self) -> str:
        return self.email

    @property
    def default_shipping_address(self) -> CustomerAddress | None:
        for address in self.addresses:
            if address.is_default_shipping:
                return address
        return self.addresses[0] if self.addresses else None

    def in_tier(self, tier: Tier) -> bool:
        return tier in self.tier

    def _address_payload(self, address: CustomerAddress) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "firstname": address.firstname or self.firstname,
            "lastname": address.lastname or self.lastname,
            "street": [address.street],
            "city": address.city,
            "postcode": address.postcode,
            "country_id": address.country,
            "telephone": address.telephone,
            "default_shipping": address.is_default_shipping,
            "default_billing": address.is_default_billing,
        }
        if address.region:
            payload["region"] = {"region": address.region}
        return payload

    def to_payload(self) -> dict[str, Any]:
        """Render the ``{"customer": ..., "password": ...}`` create request body."""
        return {
            "customer": {
                "email": self.email,
                "firstname": self.firstname,
                "lastname": self.lastname,
                "website_id": 1,
                "store_id": 1,
                "group_id": 1,
                "addresses": [self._address_payload(address) for address in self.addresses],
            },
            "password": self.password,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "CustomerFixture":
        return cls(
            id=payload["id"],
            email=payload["email"],
            password=payload["password"],
            firstname=payload["firstname"],
            lastname=payload["lastname"],
            tier=_parse_tiers(payload.get("tier")),
            addresses=tuple(CustomerAddress.from_dict(item) for item in payload.get("addresses", []) or []),
        )


@dataclass(frozen=True)
class CouponFixture:
    """Cart price rule plus its specific coupon code."""

    id: str
    code: str
    name: str
    type: str
    discount_amount: Decimal
    tier: frozenset[Tier]
    minimum_order: Decimal | None = None
    apply_to_shipping: bool = False
    free_shipping: bool = False

    kind = FixtureKind.COUPON

    @property
    def natural_key(self) -> str:
        return self.code

    @property
    def simple_action(self) -> str:
        return _DISCOUNT_ACTIONS.get(self.type, "by_percent")

    def in_tier(self, tier: Tier) -> bool:
        return tier in self.tier

    def to_rule_payload(self) -> dict[str, Any]:
        """Render the parent ``{"rule": ...}`` create request body."""
        rule: dict[str, Any] = {
            "name": self.name,
            "description": f"Test coupon: {self.name}",
            "is_active": True,
            "coupon_type": "SPECIFIC_COUPON",
            "uses_per_coupon": COUPON_USES_PER_COUPON,
            "uses_per_customer": COUPON_USES_PER_CUSTOMER,
            "from_date": COUPON_FROM_DATE,
            "to_date": COUPON_TO_DATE,
            "simple_action": self.simple_action,
            "discount_amount": float(self.discount_amount),
            "apply_to_shipping": self.apply_to_shipping,
            "stop_rules_processing": False,
            "website_ids": list(COUPON_WEBSITE_IDS),
            "customer_group_ids": list(COUPON_CUSTOMER_GROUP_IDS),
        }
        if self.free_shipping:
            rule["simple_free_shipping"] = "1"
        if self.minimum_order is not None:
            rule["condition"] = {
                "condition_type": "Magento\\SalesRule\\Model\\Rule\\Condition\\Combine",
                "aggregator_type": "all",
                "value": "1",
                "conditions": [
                    {
                        "condition_type": "Magento\\SalesRule\\Model\\Rule\\Condition\\Address",
                        "attribute_name": "base_subtotal",
                        "operator": ">=",
                        "value": str(self.minimum_order),
                    }
                ],
            }
        return {"rule": rule}

    def to_coupon_payload(self, rule_id: int) -> dict[str, Any]:
        """Render the dependent ``{"coupon": ...}`` body for an existing rule."""
        return {
            "coupon": {
                "rule_id": rule_id,
                "code": self.code,
                "usage_limit": COUPON_USES_PER_COUPON,
                "usage_per_customer": COUPON_USES_PER_CUSTOMER,
                "is_primary": True,
            }
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "CouponFixture":
        minimum_order = payload.get("minimum_order")
        return cls(
            id=payload["id"],
            code=payload["code"],
            name=payload["name"],
            type=payload.get("type", "percentage"),
            discount_amount=Decimal(str(payload.get("discount_amount", 0))),
            tier=_parse_tiers(payload.get("tier")),
            minimum_order=Decimal(str(minimum_order)) if minimum_order is not None else None,
            apply_to_shipping=bool(payload.get("apply_to_shipping", False)),
            free_shipping=bool(payload.get("free_shipping", False)),
        )


Fixture = ProductFixture | CustomerFixture | CouponFixture

FIXTURE_TYPES: dict[FixtureKind, type] = {
    FixtureKind.PRODUCT: ProductFixture,
    FixtureKind.CUSTOMER: CustomerFixture,
    FixtureKind.COUPON: CouponFixture,
}
