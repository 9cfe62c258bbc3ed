# rsvp_app/schemas.py  # Esquemas Pydantic de entrada/salida de la API.

# =================================================================================
# 📦 Schemas (MODELOS DE DATOS Pydantic)
# ---------------------------------------------------------------------------------
# - Los nombres Python van en snake_case; el JSON del sitio usa camelCase (alias).
# - FastAPI serializa por alias, así que las respuestas salen en camelCase.
# - Pydantic v2: field_validator / model_validator y ConfigDict.
# =================================================================================

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from rsvp_app.models import LanguageEnum

LanguageLiteral = Literal["en", "ar"]


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =================================================================================
# 🔎 Búsqueda
# =================================================================================
class SearchRequest(CamelModel):
    search_query: str = Field(default="", alias="searchQuery")

    @field_validator("search_query", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        # El sitio antiguo a veces mandaba null o números: se tratan como texto.
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class GuestOut(CamelModel):
    english_name: str = Field(alias="englishName")
    arabic_name: str = Field(default="", alias="arabicName")
    family_group: str = Field(default="", alias="familyGroup")
    table_number: Optional[str] = Field(default=None, alias="tableNumber")
    row_index: int = Field(alias="rowIndex")


class RateLimitInfo(BaseModel):
    remaining: int
    limit: int


class SearchResponse(CamelModel):
    guests: List[GuestOut]
    search_language: LanguageLiteral = Field(alias="searchLanguage")
    rate_limit: Optional[RateLimitInfo] = Field(default=None, alias="rateLimit")


class QuotaResponse(CamelModel):
    remaining: int
    limit: int
    reset_at: Optional[datetime] = Field(default=None, alias="resetAt")


# =================================================================================
# 💌 RSVP
# =================================================================================
class RsvpRequest(CamelModel):
    selected_row_indexes: List[int] = Field(default_factory=list, alias="selectedRowIndexes")
    attending: Optional[bool] = None
    client_language: str = Field(default="en", alias="clientLanguage")

    @model_validator(mode="before")
    @classmethod
    def _legacy_guests_payload(cls, data: Any) -> Any:
        # Formato antiguo: {"guests": [{"englishName": ..., "rowIndex": 3}], "attending": true}
        if isinstance(data, dict) and "selectedRowIndexes" not in data and "selected_row_indexes" not in data:
            guests = data.get("guests")
            if isinstance(guests, list):
                data = dict(data)
                data["selectedRowIndexes"] = [g.get("rowIndex") for g in guests if isinstance(g, dict)]
        return data


class RsvpResult(CamelModel):
    success: bool
    table_number: Optional[str] = Field(default=None, alias="tableNumber")
    message: str


class ErrorResponse(BaseModel):
    error: str
    message: str


# =================================================================================
# 👑 Admin
# =================================================================================
class RsvpRecordOut(CamelModel):
    row_index: int = Field(alias="rowIndex")
    english_name: str = Field(alias="englishName")
    arabic_name: str = Field(default="", alias="arabicName")
    family_group: Optional[str] = Field(default=None, alias="familyGroup")
    attending: bool
    confirmation_text: str = Field(alias="confirmationText")
    client_language: LanguageEnum = Field(alias="clientLanguage")
    responded_at: datetime = Field(alias="respondedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, use_enum_values=True)


class DirectoryRefreshResult(BaseModel):
    guests: int
    families: int
    generation: int
