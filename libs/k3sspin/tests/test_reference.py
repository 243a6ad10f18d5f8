"""Tests for k3sspin image reference parsing."""

import pytest

from k3sspin.errors import InvalidReferenceError
from k3sspin.reference import (
    get_name_from_image_reference,
    resolve_image_reference,
    validate_image_reference,
)
from k3sspin.types import ImageReference


DIGEST = "sha256:cc4b191d11728b4e9e024308f0c03aded893da2002403943adc9deb8c4ca1644"

NAME_TABLE = [
    ("bacongobbler/hello-rust", "hello-rust"),
    ("bacongobbler/hello-rust:v1.0.0", "hello-rust"),
    ("ghcr.io/bacongobbler/hello-rust", "hello-rust"),
    ("ghcr.io/bacongobbler/hello-rust:v1.0.0", "hello-rust"),
    ("ghcr.io/spinkube/spinkube/runtime-class-manager:v1", "runtime-class-manager"),
    ("nginx:latest", "nginx"),
    ("nginx", "nginx"),
    (f"ttl.sh/hello-spinkube@{DIGEST}", "hello-spinkube"),
]


class TestValidateImageReference:
    @pytest.mark.parametrize("reference", [ref for ref, _ in NAME_TABLE])
    def test_valid_references(self, reference):
        assert validate_image_reference(reference) is True

    @pytest.mark.parametrize("reference", [
        "localhost:5000/hello",
        "registry.example.com:443/team/app:1.2.3",
        f"ghcr.io/foo/app:v1@{DIGEST}",
        "foo/my__app",
        "foo/my--app",
    ])
    def test_registry_ports_and_separators(self, reference):
        assert validate_image_reference(reference) is True

    @pytest.mark.parametrize("reference", [
        "",
        "invalid image reference!",
        "Nginx",
        "ghcr.io/Foo/app",
        "nginx:",
        "foo//bar",
        "/nginx",
        "nginx@sha256:abc",
        "-nginx",
    ])
    def test_invalid_references(self, reference):
        assert validate_image_reference(reference) is False


class TestGetNameFromImageReference:
    @pytest.mark.parametrize("reference,name", NAME_TABLE)
    def test_name_table(self, reference, name):
        assert get_name_from_image_reference(reference) == name

    def test_digest_is_stripped_before_tag(self):
        name = get_name_from_image_reference(f"ghcr.io/foo/app:v1@{DIGEST}")
        assert name == "app"

    @pytest.mark.parametrize("reference", ["", "foo/", "ghcr.io/foo/:v1", "@sha256:abc"])
    def test_empty_name_raises(self, reference):
        with pytest.raises(InvalidReferenceError) as exc_info:
            get_name_from_image_reference(reference)
        assert str(exc_info.value) == f"invalid image reference provided: '{reference}'"


class TestResolveImageReference:
    def test_resolve(self):
        ref = resolve_image_reference("ghcr.io/foo/example-app:v0.1.0")
        assert ref == ImageReference(raw="ghcr.io/foo/example-app:v0.1.0", name="example-app")

    def test_parse_classmethod(self):
        ref = ImageReference.parse("nginx")
        assert ref.name == "nginx"
        assert ref.raw == "nginx"

    def test_invalid_reference_message(self):
        with pytest.raises(InvalidReferenceError) as exc_info:
            resolve_image_reference("invalid image reference!")
        assert str(exc_info.value) == (
            "invalid image reference provided: 'invalid image reference!'"
        )
        assert exc_info.value.reference == "invalid image reference!"

    def test_invalid_reference_is_value_error(self):
        with pytest.raises(ValueError):
            resolve_image_reference("not valid")
