"""Pytest configuration for the storefront E2E tests with Playwright.

Every fixture here needs a reachable storefront; without ``BASE_URL`` the
whole layer is skipped rather than failed.
"""

from __future__ import annotations

import logging
import os
import uuid

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from storefront_qa.errors import ConfigurationError
from storefront_qa.manifest_store import default_store
from storefront_qa.utils import load_config, load_env_file

from .bound_helpers import StorefrontHelpers
from .pages import AccountPage, CartPage, CheckoutPage, HomePage, MiniCart, ProductPage
from .pages.checkout_page import address_from_customer

logger = logging.getLogger("storefront-qa.e2e")


@pytest.fixture(scope="session")
def storefront_config():
    """Storefront configuration; skips the E2E layer when ``BASE_URL`` is unset."""
    load_env_file()
    try:
        return load_config(require_admin=False)
    except ConfigurationError as exc:
        pytest.skip(str(exc))


@pytest.fixture(scope="session")
def base_url(storefront_config):
    return storefront_config.base_url


@pytest.fixture(scope="session")
def browser(storefront_config):
    """Launch browser for E2E tests."""
    headless = os.environ.get("HEADED", "") == ""
    with sync_playwright() as p:
        browser = p.chromium.launch(headless=headless)
        yield browser
        browser.close()


@pytest.fixture(scope="function")
def page(browser):
    """Create a new page in a fresh context for each test."""
    context = browser.new_context(viewport={"width": 1920, "height": 1080})
    page = context.new_page()
    yield page
    page.close()
    context.close()


# ---------------------------------------------------------------------------
# Test data
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def manifest():
    return default_store()


@pytest.fixture
def test_product(manifest):
    return manifest.simple_product()


@pytest.fixture
def test_customer(manifest):
    return manifest.test_customer()


@pytest.fixture
def test_coupon(manifest):
    return manifest.percentage_coupon()


@pytest.fixture
def customer_address(test_customer):
    return address_from_customer(test_customer)


@pytest.fixture
def guest_email():
    """A unique guest address in the fixture domain so cleanup can find it."""
    return f"guest.{uuid.uuid4().hex[:8]}@qbdigital.test"


# ---------------------------------------------------------------------------
# Page objects
# ---------------------------------------------------------------------------

@pytest.fixture
def home_page(page, base_url):
    return HomePage(page, base_url)


@pytest.fixture
def product_page(page, base_url):
    return ProductPage(page, base_url)


@pytest.fixture
def cart_page(page, base_url):
    return CartPage(page, base_url)


@pytest.fixture
def mini_cart(page, base_url):
    return MiniCart(page, base_url)


@pytest.fixture
def checkout_page(page, base_url):
    return CheckoutPage(page, base_url)


@pytest.fixture
def account_page(page, base_url):
    return AccountPage(page, base_url)


@pytest.fixture
def test_helpers(page, base_url, test_customer):
    """Storefront helpers bound to this test's page and the basic test customer."""
    return StorefrontHelpers(page, base_url, test_customer)


# ---------------------------------------------------------------------------
# Prepared sessions
# ---------------------------------------------------------------------------

@pytest.fixture
def authenticated_page(page, account_page, test_customer):
    """A page with the basic test customer signed in; signs out afterwards."""
    account_page.login(test_customer.email, test_customer.password)
    yield page
    account_page.logout()


@pytest.fixture
def cart_with_product(page, product_page, cart_page, test_product):
    """A page whose cart holds one unit of the simple test product."""
    product_page.open(test_product.url_key)
    product_page.add_to_cart(1)
    yield page
    try:
        cart_page.clear()
    except (TimeoutError, PlaywrightError) as exc:
        logger.warning("Cart cleanup after test failed: %s", exc)
