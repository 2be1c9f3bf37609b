import os
from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=(".env",), env_file_encoding="utf-8", extra="ignore")

    app_env: Literal["development", "production", "test"] = "development"
    host: str = "0.0.0.0"
    port: int = 1323
    allowed_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: str | None = None

    # Cluster access. in_cluster=None picks in-cluster credentials when the
    # service account token is mounted, kubeconfig otherwise.
    kube_context: str | None = None
    kube_config_path: str | None = Field(default=None, alias="KUBE_CONFIG_PATH")
    in_cluster: bool | None = None
    service_account_token_path: str = "/var/run/secrets/kubernetes.io/serviceaccount/token"
    request_timeout_seconds: float = Field(default=30.0, gt=0, description="Deadline for a single gateway operation")

    # Provenance annotation written on pods created with a generated name
    created_by: str = Field(default="clustergate", description="Value of the createdBy annotation")

    @computed_field
    @property
    def is_debug(self) -> bool:
        return self.app_env == "development"

    def use_in_cluster_config(self) -> bool:
        if self.in_cluster is not None:
            return self.in_cluster
        return os.path.exists(self.service_account_token_path)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
