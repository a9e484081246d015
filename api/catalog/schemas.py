"""
Pydantic schemas for the plan catalog endpoints.

Field names are the ones the landing page and admin console already consume.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class PlanRequest(BaseModel):
    """
    Body for both create and update. Update is a full replace: omitted or
    null fields fall back to the same defaults used on create.
    """

    modelo: str = Field(..., min_length=1, max_length=200)
    version: str = Field(..., min_length=1, max_length=200)
    valor: str = ""
    anticipo: str = ""
    cuota: str = ""
    tipo: str = "70/30"
    adjudicacion: str = "cuota 2"
    whatsapp_texto: str = ""
    activo: bool = True
    orden: int = 0

    @field_validator(
        "valor",
        "anticipo",
        "cuota",
        "tipo",
        "adjudicacion",
        "whatsapp_texto",
        "activo",
        "orden",
        mode="before",
    )
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("modelo", "version")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class ImageFromUrlRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)


class ImageOrder(BaseModel):
    id: int
    orden: int


class ReorderRequest(BaseModel):
    orden: list[ImageOrder] = Field(default_factory=list)
