# utils/sentinels.py
from typing import Any, Self, ClassVar, Optional
from pydantic_core import core_schema

class Missing:
	"""
	Marker for "argument not provided".

	Distinguishes an omitted optional field from an explicit ``None``
	(e.g. an extras patch that leaves the award untouched vs. one that clears it).
	"""
	_instance: ClassVar[Optional["Missing"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __repr__(self) -> str:
		return "MISSING"

	def __bool__(self) -> bool:
		return False

	@classmethod
	def __get_pydantic_core_schema__(cls, _source, _handler) -> core_schema.CoreSchema:
		def validate(v):
			if v is cls._instance:
				return v
			raise ValueError('value is not the Missing sentinel')
		return core_schema.no_info_plain_validator_function(validate)


MISSING = Missing()


def provided(value: Any) -> bool:
	return value is not MISSING
