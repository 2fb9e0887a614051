"""Base model for Sonarr/Radarr API resources."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ArrModel(BaseModel):
    """Base class of catalog resources.

    Fields are snake_case in Python and camelCase on the wire. Unknown fields
    are kept, so a resource fetched from the API can be modified and sent
    back with PUT without losing data this application does not model.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_payload(self) -> dict[str, object]:
        """Serialize to the camelCase JSON body expected by the API."""
        return self.model_dump(mode="json", by_alias=True)
