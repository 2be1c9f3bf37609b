"""
Name validation and descriptor/patch construction for pods.

Everything here is pure: nothing talks to the cluster, so request problems are
reported before any remote call is made.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from clustergate.exceptions import ValidationError
from clustergate.schemas import RawObject

MAX_NAME_LENGTH = 253
# Container names and label values are DNS-1123 labels.
MAX_LABEL_LENGTH = 63
NAME_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")

APP_LABEL = "app"
ROLE_LABEL = "role"
ROLE_VALUE = "web"
CREATED_BY_ANNOTATION = "createdBy"
CREATED_AT_ANNOTATION = "createdAt"


def validate_resource_name(value: str | None, field: str) -> str:
    """Check a name against the cluster naming rules.

    Names are lowercase alphanumerics and '-', start and end with an
    alphanumeric character and are at most 253 characters long.

    Raises:
        ValidationError: when the value is empty or malformed
    """
    if not value:
        raise ValidationError(f"{field} must not be empty", details={"field": field})
    if len(value) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"{field} must be at most {MAX_NAME_LENGTH} characters",
            details={"field": field, "length": len(value)},
        )
    if not NAME_PATTERN.match(value):
        raise ValidationError(
            f"{field} '{value}' must consist of lowercase alphanumeric characters or '-', "
            "and must start and end with an alphanumeric character",
            details={"field": field},
        )
    return value


def validate_label_name(value: str | None, field: str) -> str:
    """Like validate_resource_name, but capped at 63 characters.

    Applies wherever a name is reused as a container name or label value.
    """
    value = validate_resource_name(value, field)
    if len(value) > MAX_LABEL_LENGTH:
        raise ValidationError(
            f"{field} must be at most {MAX_LABEL_LENGTH} characters when used as a container name or label",
            details={"field": field, "length": len(value)},
        )
    return value


def require_value(value: str | None, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} must not be empty", details={"field": field})
    return value


def rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_pod_descriptor(name: str, namespace: str, image: str) -> RawObject:
    """Minimal pod: exact identity and a single container named after the pod."""
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"containers": [{"name": name, "image": image}]},
    }


def build_generated_pod_descriptor(
    name: str,
    namespace: str,
    created_by: str,
    created_at: datetime,
    container_template: dict[str, Any] | None = None,
    image: str | None = None,
) -> RawObject:
    """Pod asking the cluster to pick a unique name from the ``<name>-`` prefix.

    Carries the app/role labels and the createdBy/createdAt annotations. A
    container is attached only when a template is supplied; its name and image
    default to the request's.
    """
    descriptor: RawObject = {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {
            "generateName": f"{name}-",
            "namespace": namespace,
            "labels": {APP_LABEL: name, ROLE_LABEL: ROLE_VALUE},
            "annotations": {
                CREATED_BY_ANNOTATION: created_by,
                CREATED_AT_ANNOTATION: rfc3339(created_at),
            },
        },
    }
    if container_template is not None:
        container = dict(container_template)
        container.setdefault("name", name)
        if image:
            container.setdefault("image", image)
        descriptor["spec"] = {"containers": [container]}
    return descriptor


def build_image_patch(container: str, image: str) -> RawObject:
    """Strategic-merge patch changing one container's image and nothing else."""
    return {"spec": {"containers": [{"name": container, "image": image}]}}
