"""Tests for portal resolution and the route guard."""

import pytest

from authsession.portal import (
    LoggingNavigator,
    Portal,
    PortalContext,
    guard_route,
    portal_for_path,
)
from authsession.tokens import TokenStore


class TestPortalResolution:
    @pytest.mark.parametrize(
        "path,portal",
        [
            ("/admin/tenants", Portal.ADMIN),
            ("/business/dashboard", Portal.BUSINESS),
            ("/business", Portal.BUSINESS),
            ("/customer/subscriptions", Portal.CUSTOMER),
            ("/pricing", Portal.DEFAULT),
            ("", Portal.DEFAULT),
            (None, Portal.DEFAULT),
        ],
    )
    def test_portal_for_path(self, path, portal):
        assert portal_for_path(path) is portal

    def test_login_paths(self):
        assert Portal.ADMIN.login_path == "/admin/login"
        assert Portal.BUSINESS.login_path == "/business/login"
        assert Portal.CUSTOMER.login_path == "/customer/login"
        assert Portal.DEFAULT.login_path == "/login"

    def test_fixed_portal_wins_over_location(self):
        context = PortalContext(Portal.CUSTOMER, location=lambda: "/admin/users")

        assert context.resolve() is Portal.CUSTOMER

    def test_location_is_read_at_resolve_time(self):
        current = {"path": "/customer/home"}
        context = PortalContext(location=lambda: current["path"])

        assert context.resolve().login_path == "/customer/login"
        current["path"] = "/business/plans"
        assert context.resolve().login_path == "/business/login"

    def test_portal_accepts_string_value(self):
        assert PortalContext("business").resolve() is Portal.BUSINESS

    def test_no_context_defaults(self):
        assert PortalContext().resolve().login_path == "/login"


class TestLoggingNavigator:
    def test_records_history(self):
        navigator = LoggingNavigator()
        assert navigator.current is None

        navigator.navigate("/login")
        navigator.navigate("/business/login")

        assert navigator.history == ["/login", "/business/login"]
        assert navigator.current == "/business/login"


class TestGuardRoute:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/business/dashboard", "/business/login"),
            ("/customer/home", "/customer/login"),
            ("/admin/tenants", "/admin/login"),
            ("/settings", "/"),
        ],
    )
    def test_unauthenticated_redirects_to_portal_login(self, path, expected):
        assert guard_route(path, TokenStore()) == expected

    def test_authenticated_without_role_requirement_is_allowed(self, token_store):
        assert guard_route("/business/dashboard", token_store) is None

    def test_missing_role_in_admin_area(self, token_store):
        token_store.set_user({"roles": ["BUSINESS_OWNER"]})

        assert guard_route("/admin/tenants", token_store, required_role="PLATFORM_ADMIN") == "/admin/login"

    def test_missing_role_elsewhere_goes_home(self, token_store):
        assert guard_route("/business/settings", token_store, required_role="BUSINESS_OWNER") == "/"

    def test_role_present_is_allowed(self, token_store):
        token_store.set_user({"roles": ["PLATFORM_ADMIN"]})

        assert guard_route("/admin/tenants", token_store, required_role="PLATFORM_ADMIN") is None
