import re

import pytest

from github2k8s.core.naming import NameRegistry, normalize_name, service_raw_name

LABEL_RE = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")

AWKWARD_INPUTS = [
    "", " ", "-", "---", "!!!", "@#$%^&*()", "日本語", "💥💥", "Café",
    "My_Service", "api.v2", "a//b", "--x--", "UPPER", "tabs\tand\nnewlines",
    "a" * 100, "a" * 62 + "-b", "x" + "-" * 70 + "y",
]


@pytest.mark.parametrize("value,expected", [
    ("My_Service", "my-service"),
    ("api.v2", "api-v2"),
    ("a//b", "a-b"),
    ("--x--", "x"),
    ("Café", "caf"),
    ("shop-worker", "shop-worker"),
])
def test_normalize_examples(value, expected):
    assert normalize_name(value) == expected


@pytest.mark.parametrize("value", AWKWARD_INPUTS)
def test_normalize_always_yields_a_label(value):
    name = normalize_name(value)
    assert name
    assert len(name) <= 63
    assert "--" not in name
    assert LABEL_RE.match(name)


@pytest.mark.parametrize("value", AWKWARD_INPUTS)
def test_normalize_is_idempotent(value):
    once = normalize_name(value, fallback="shop")
    assert normalize_name(once, fallback="shop") == once


def test_empty_result_uses_fallback():
    assert normalize_name("!!!", fallback="My Repo") == "my-repo"
    assert normalize_name("日本語", fallback="") == "app"


def test_long_names_truncate_without_trailing_hyphen():
    assert normalize_name("a" * 100) == "a" * 63
    assert normalize_name("a" * 62 + "-b") == "a" * 62


def test_service_raw_name():
    assert service_raw_name(".", "shop") == "shop"
    assert service_raw_name("worker", "shop") == "shop-worker"
    assert service_raw_name("services/api", "shop") == "shop-services-api"


class TestNameRegistry:

    def test_suffixes_collisions_in_claim_order(self):
        names = NameRegistry()
        assert names.claim("api") == "api"
        assert names.claim("api") == "api-2"
        assert names.claim("API") == "api-3"

    def test_reserved_names_are_never_handed_out(self):
        names = NameRegistry(reserved=["shop-config"])
        assert names.claim("shop-config") == "shop-config-2"

    def test_suffix_fits_label_length(self):
        names = NameRegistry()
        base = "a" * 63
        assert names.claim(base) == base
        second = names.claim(base)
        assert second == "a" * 61 + "-2"
        assert len(second) == 63
