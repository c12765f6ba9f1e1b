from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for every planner schema.
    Python attributes stay snake_case; JSON uses the camelCase interchange names
    that the UI and export collaborators consume.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict:
        """Serializes with the camelCase interchange names."""
        return self.model_dump(mode="json", by_alias=True)
