from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..exceptions import ValidationFailed


class ApiModel(BaseModel):
    """Request bodies use camelCase keys, like the stored documents."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def dump_model(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def parse_date_param(value: Optional[str], name: str) -> Union[date, datetime, None]:
    """Parse a YYYY-MM-DD or ISO 8601 query parameter."""
    if value is None or value == "":
        return None
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationFailed(f"Invalid {name}. Use YYYY-MM-DD or ISO 8601", field=name) from None
