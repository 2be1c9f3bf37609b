"""Tests for name validation and descriptor construction."""

from datetime import datetime, timedelta, timezone

import pytest

from clustergate.exceptions import ValidationError
from clustergate.services.identity import (
    build_generated_pod_descriptor,
    build_image_patch,
    rfc3339,
    validate_resource_name,
)


@pytest.mark.parametrize("value", ["default", "kube-system", "a", "web-01", "0abc", "a" * 253])
def test_valid_names(value: str) -> None:
    assert validate_resource_name(value, "name") == value


@pytest.mark.parametrize("value", [None, "", "Default", "web_1", "web-", "-web", "a.b", "a b", "a" * 254])
def test_invalid_names(value) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_resource_name(value, "namespace")

    assert exc_info.value.details["field"] == "namespace"


def test_image_patch_touches_one_container() -> None:
    assert build_image_patch("web", "nginx:1.25") == {"spec": {"containers": [{"name": "web", "image": "nginx:1.25"}]}}


def test_rfc3339_converts_to_utc() -> None:
    moment = datetime(2024, 5, 1, 14, 30, 15, 123456, tzinfo=timezone(timedelta(hours=2)))

    assert rfc3339(moment) == "2024-05-01T12:30:15Z"


def test_rfc3339_treats_naive_as_utc() -> None:
    assert rfc3339(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05Z"


def test_generated_descriptor_without_template() -> None:
    descriptor = build_generated_pod_descriptor(
        "web", "default", created_by="ops", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)
    )

    assert descriptor["metadata"] == {
        "generateName": "web-",
        "namespace": "default",
        "labels": {"app": "web", "role": "web"},
        "annotations": {"createdBy": "ops", "createdAt": "2024-01-01T00:00:00Z"},
    }
    assert "spec" not in descriptor


def test_generated_descriptor_template_keeps_explicit_fields() -> None:
    descriptor = build_generated_pod_descriptor(
        "web",
        "default",
        created_by="ops",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        container_template={"name": "main", "image": "custom:1"},
        image="nginx",
    )

    assert descriptor["spec"] == {"containers": [{"name": "main", "image": "custom:1"}]}
