from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from permatrix.catalog import AccessType
from permatrix.codecs.csv_codec import CSV_EXPORT_FILENAME


class CsvConfig(BaseModel):
    export_filename: str = CSV_EXPORT_FILENAME


class JsonConfig(BaseModel):
    indent: int | None = Field(default=2, ge=0)


class PermatrixConfig(BaseModel):
    # "json" shadows BaseModel.json
    model_config = ConfigDict(populate_by_name=True)

    seed: Literal["example", "empty"] = "example"
    csv: CsvConfig = Field(default_factory=CsvConfig)
    json_: JsonConfig = Field(default_factory=JsonConfig, alias="json")
    access_types: list[AccessType] = Field(default_factory=list)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
