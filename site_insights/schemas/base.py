"""Shared pydantic base classes for input records and report payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Immutable input record produced by the crawler."""

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)


class ReportModel(BaseModel):
    """Immutable report payload, serialised with camelCase keys for the UI."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class SeveritySummary(ReportModel):
    """Critical / warning / passed rollup attached to every analysis report."""

    critical: int = 0
    warnings: int = 0
    passed: int = 0
