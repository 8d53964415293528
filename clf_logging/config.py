from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Any, Dict, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Cloud Foundry platform metadata (JSON object)
    vcap_application: Dict[str, Any] = {}
    cf_instance_index: Optional[str] = None

    # Explicit overrides
    clf_deployment_id: Optional[str] = None
    clf_application_name: Optional[str] = None
    clf_instance_index: Optional[str] = None
    clf_module: Optional[str] = None

    def deployment_id(self) -> Optional[str]:
        return self.clf_deployment_id or self.vcap_application.get("application_id")

    def application_name(self) -> Optional[str]:
        return self.clf_application_name or self.vcap_application.get(
            "application_name"
        )

    def instance_index(self) -> Any:
        return (
            self.clf_instance_index
            or self.vcap_application.get("instance_index")
            or self.cf_instance_index
        )

    def module(self) -> Optional[str]:
        return self.clf_module
