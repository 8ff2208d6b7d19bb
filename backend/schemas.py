"""Pydantic schemas for API requests and diagnostic responses."""

from pydantic import BaseModel, Field, field_validator

_TRUE_VALUES = {"1", "true", "yes", "on"}


class AnalyzeRequest(BaseModel):
    """Request body for POST /analyze and POST /analyze/fast."""

    url: str = ""
    fast: bool = False
    llm: bool = False

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url_field(cls, value: object) -> str:
        return str(value or "").strip()

    @field_validator("fast", "llm", mode="before")
    @classmethod
    def normalize_flag(cls, value: object) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_VALUES
        return bool(value)


class FastAnalyzeRequest(AnalyzeRequest):
    """Request body for POST /analyze/fast; fast defaults to on."""

    fast: bool = True


class KeywordEntry(BaseModel):
    keywords: str
    search_count: int
    source: str
    rarity: str = ""
    age: str = ""


class KeywordDiagnostics(BaseModel):
    """Keyword-combination cache contents."""

    total: int
    most_common: list[KeywordEntry] = Field(default_factory=list)
    least_common: list[KeywordEntry] = Field(default_factory=list)
    recent: list[KeywordEntry] = Field(default_factory=list)


class WordEntry(BaseModel):
    word: str
    total_count: int
    url_count: int
    avg_per_url: float
    datamuse_frequency: float | None = None


class WordDiagnostics(BaseModel):
    """Cross-page word corpus contents."""

    total: int
    most_common: list[WordEntry] = Field(default_factory=list)
    least_common: list[WordEntry] = Field(default_factory=list)


class ClearResponse(BaseModel):
    success: bool = True
    keywords_deleted: int
    words_deleted: int


class StoreHealth(BaseModel):
    """Table sizes and analysis cache counters."""

    status: str
    keyword_count: int
    word_count: int
    analysis_cache: dict
    fast_analysis_cache: dict
