import httpx
import pytest

from authsession.public_paths import DEFAULT_PUBLIC_PATHS, PublicPathClassifier


@pytest.mark.parametrize(
    "path",
    [
        "/api/auth/login",
        "/api/auth/signup",
        "/api/auth/verify-email",
        "/api/auth/resend-verification",
        "/api/auth/forgot-password",
        "/api/auth/reset-password",
        "https://api.test/api/auth/login",
        "/api/auth/login?next=/business",
    ],
)
def test_default_public_paths(path):
    assert PublicPathClassifier().is_public(path)


@pytest.mark.parametrize(
    "path",
    [
        "/api/auth/me",
        "/api/auth/logout",
        "/api/auth/refresh-token",
        "/api/auth/change-password",
        "/api/customers",
        "",
        None,
    ],
)
def test_protected_paths(path):
    assert not PublicPathClassifier().is_public(path)


def test_httpx_url_is_matched_on_path():
    classifier = PublicPathClassifier()

    assert classifier.is_public(httpx.URL("https://api.test/api/auth/signup"))
    assert not classifier.is_public(httpx.URL("https://api.test/api/plans"))


def test_custom_paths_replace_defaults():
    classifier = PublicPathClassifier(["/health", " ", "/health", "/status "])

    assert classifier.paths == ("/health", "/status")
    assert classifier.is_public("/health/live")
    assert not classifier.is_public("/api/auth/login")


def test_default_order_is_preserved():
    assert PublicPathClassifier().paths == DEFAULT_PUBLIC_PATHS
