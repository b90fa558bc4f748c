"""Application credential models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApplicationKeys(BaseModel):
    """Non-secret view of an application's keys, safe to return on every fetch."""

    application_id: str = Field(..., description="Application ID")
    public_key: str = Field(..., description="Public key sent as X-Public-Key")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ApplicationCredential(ApplicationKeys):
    """Full key pair. The secret is disclosed only at issuance or re-issuance."""

    secret_key: str = Field(..., description="HMAC signing secret", repr=False)

    def keys(self) -> ApplicationKeys:
        return ApplicationKeys(application_id=self.application_id, public_key=self.public_key)
