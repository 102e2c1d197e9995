import base64
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator


class PaperFormat(str, Enum):
    LETTER = "Letter"
    LEGAL = "Legal"
    TABLOID = "Tabloid"
    LEDGER = "Ledger"
    A0 = "A0"
    A1 = "A1"
    A2 = "A2"
    A3 = "A3"
    A4 = "A4"
    A5 = "A5"
    A6 = "A6"


class MarginOptions(BaseModel):
    top: Optional[str | float] = None
    bottom: Optional[str | float] = None
    left: Optional[str | float] = None
    right: Optional[str | float] = None


class PdfOptions(BaseModel):
    """Backend-agnostic print options for one render call."""

    format: Optional[PaperFormat] = None
    width: Optional[str | float] = None
    height: Optional[str | float] = None
    scale: float = 1.0
    landscape: bool = False
    page_ranges: str = ""
    print_background: bool = False
    prefer_css_page_size: bool = False
    display_header_footer: bool = False
    header_template: str = ""
    footer_template: str = ""
    margin: Optional[MarginOptions] = None
    omit_background: bool = False

    @field_validator("scale")
    @classmethod
    def validate_scale(cls, v: float) -> float:
        # Chromium rejects anything outside this range
        if not 0.1 <= v <= 2.0:
            raise ValueError("scale must be between 0.1 and 2")
        return v

    @field_validator("header_template", "footer_template", "page_ranges", mode="before")
    @classmethod
    def none_to_empty(cls, v: str | None) -> str:
        return "" if v is None else v


class ExportRequest(BaseModel):
    html: str
    header: Optional[str] = None
    footer: Optional[str] = None
    download_name: Optional[str] = None
    options: Optional[PdfOptions] = None
    engine: Optional[str] = None


class ReportRequest(BaseModel):
    title: str
    columns: list[str]
    rows: list[list[str | int | float | None]]
    notes: Optional[str] = None
    first_page_size: int = 20
    regular_page_size: int = 25
    last_page_reserve_rows: int = 3
    header: Optional[str] = None
    footer: Optional[str] = None
    download_name: Optional[str] = None
    options: Optional[PdfOptions] = None
    engine: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v

    @field_validator("columns")
    @classmethod
    def validate_columns(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one column is required")
        return v


class PdfContentResponse(BaseModel):
    content: str  # base64-encoded PDF
    content_type: str = "application/pdf"
    download_name: str

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.content)
