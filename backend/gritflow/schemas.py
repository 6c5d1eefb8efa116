from __future__ import annotations
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
	"""Base for every wire model: snake_case in Python, camelCase on the wire."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessResponse(ApiModel):
	success: bool = True
