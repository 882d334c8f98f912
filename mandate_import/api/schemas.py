"""Request body models for JSON import endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mandate_import.domain import RawMandateRow, RawValueRow


def _api_cell_text(value: object) -> object:
    """Render numeric id cells as text; whole-number floats lose a trailing `.0`."""

    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return value


class ChunkMandateRow(BaseModel):
    """Mandate row as posted by chunked upload clients."""

    model_config = ConfigDict(populate_by_name=True)

    external_id: str | None = Field(default=None, alias="Id")
    name: str | None = Field(default=None, alias="Nom")
    category: str | None = Field(default=None, alias="Catégorie")
    currency: str | None = Field(default=None, alias="Monnaie")

    @field_validator("external_id", "name", "category", "currency", mode="before")
    @classmethod
    def validate_cell_text(cls, value: object) -> object:
        return _api_cell_text(value)

    def to_raw_row(self) -> RawMandateRow:
        return RawMandateRow(
            external_id=self.external_id,
            name=self.name,
            category=self.category,
            currency=self.currency,
        )


class ChunkDayValueRow(BaseModel):
    """Day-value row as posted by chunked upload clients."""

    model_config = ConfigDict(populate_by_name=True)

    raw_date: date | datetime | str | None = Field(default=None, alias="Date")
    raw_value: float | int | str | None = Field(default=None, alias="Valeur")
    mandate_ref: str | None = Field(default=None, alias="MandantId")
    mandate_name: str | None = Field(default=None, alias="Mandant")

    @field_validator("raw_date", mode="before")
    @classmethod
    def validate_raw_date(cls, value: object) -> object:
        # Dates stay text so the locale-aware parser sees the original cell.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("mandate_ref", "mandate_name", mode="before")
    @classmethod
    def validate_cell_text(cls, value: object) -> object:
        return _api_cell_text(value)

    def to_raw_row(self) -> RawValueRow:
        return RawValueRow(
            raw_date=self.raw_date,
            raw_value=self.raw_value,
            mandate_ref=self.mandate_ref,
            mandate_name=self.mandate_name,
        )


class ChunkImportBody(BaseModel):
    """Body of `POST /import/chunked`.

    Attributes:
        chunk_index: Zero-based chunk index.
        total_chunks: Declared number of chunks.
        session_id: Client-generated session identifier.
        mandates: Mandate rows of this chunk.
        day_values: Day-value rows of this chunk.
        is_first_chunk: Whether this chunk opens the session.
        is_last_chunk: Whether this chunk completes the session.
    """

    model_config = ConfigDict(populate_by_name=True)

    chunk_index: int = Field(alias="chunkIndex", ge=0)
    total_chunks: int = Field(alias="totalChunks", ge=1)
    session_id: str = Field(alias="sessionId", min_length=1, max_length=200)
    mandates: list[ChunkMandateRow] = Field(default_factory=list)
    day_values: list[ChunkDayValueRow] = Field(default_factory=list, alias="dayValues")
    is_first_chunk: bool = Field(alias="isFirstChunk")
    is_last_chunk: bool = Field(alias="isLastChunk")

    @field_validator("session_id")
    @classmethod
    def validate_session_id(cls, value: str) -> str:
        normalized_value = value.strip()
        if not normalized_value:
            raise ValueError("sessionId must not be blank")
        return normalized_value

    @model_validator(mode="after")
    def validate_chunk_position(self) -> ChunkImportBody:
        if self.chunk_index >= self.total_chunks:
            raise ValueError("chunkIndex must be lower than totalChunks")
        return self
