"""Resolve header/footer/margin defaults into a complete PdfOptions value.

Chromium treats an empty header or footer template as "use the built-in
template" (title, URL, date, page number), so an absent template is replaced by
a one-character placeholder. ``display_header_footer`` is only ever switched
on by resolution, never off.
"""
from dataclasses import dataclass
from typing import Callable

from pdfexport.schemas import MarginOptions, PaperFormat, PdfOptions

PLACEHOLDER_TEMPLATE = "."
HEADER_MARGIN = "20mm"
ZERO_MARGIN = "0mm"


@dataclass(frozen=True)
class _Context:
    header: str | None
    footer: str | None

    @property
    def has_header(self) -> bool:
        return bool(self.header)

    @property
    def has_footer(self) -> bool:
        return bool(self.footer)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# field -> (supplied fragment, whether one was supplied)
TEMPLATE_RULES: dict[str, Callable[[_Context], tuple[str | None, bool]]] = {
    "header_template": lambda ctx: (ctx.header, ctx.has_header),
    "footer_template": lambda ctx: (ctx.footer, ctx.has_footer),
}

# margin side -> default used only when the side is unset or blank
MARGIN_RULES: dict[str, Callable[[_Context], str]] = {
    "top": lambda ctx: HEADER_MARGIN if ctx.has_header else ZERO_MARGIN,
    "bottom": lambda ctx: HEADER_MARGIN if ctx.has_footer else ZERO_MARGIN,
    "left": lambda ctx: ZERO_MARGIN,
    "right": lambda ctx: ZERO_MARGIN,
}


def _default_options() -> PdfOptions:
    return PdfOptions(
        format=PaperFormat.A4,
        scale=1.0,
        print_background=True,
        prefer_css_page_size=True,
    )


def clone_pdf_options(options: PdfOptions) -> PdfOptions:
    """Copy options so the caller's instance (and its margin block) is never touched."""
    return options.model_copy(deep=True)


def resolve_pdf_options(
    header: str | None = None,
    footer: str | None = None,
    base_options: PdfOptions | None = None,
) -> PdfOptions:
    ctx = _Context(header=header, footer=footer)
    options = _default_options() if base_options is None else clone_pdf_options(base_options)

    for field, rule in TEMPLATE_RULES.items():
        fragment, supplied = rule(ctx)
        if supplied:
            setattr(options, field, fragment)
        elif _is_blank(getattr(options, field)):
            setattr(options, field, PLACEHOLDER_TEMPLATE)

    options.display_header_footer = options.display_header_footer or ctx.has_header or ctx.has_footer

    if options.margin is None:
        options.margin = MarginOptions()
    for side, rule in MARGIN_RULES.items():
        if _is_blank(getattr(options.margin, side)):
            setattr(options.margin, side, rule(ctx))

    return options


# --- Presets ---


def clean_options(
    format: PaperFormat | None = None,
    margins: tuple[str, str, str, str] | None = None,
) -> PdfOptions:
    """Options with no browser header/footer. ``margins`` is (top, bottom, left, right)."""
    top, bottom, left, right = margins or (ZERO_MARGIN,) * 4
    return PdfOptions(
        format=format or PaperFormat.A4,
        print_background=True,
        prefer_css_page_size=True,
        display_header_footer=False,
        header_template=PLACEHOLDER_TEMPLATE,
        footer_template=PLACEHOLDER_TEMPLATE,
        margin=MarginOptions(top=top, bottom=bottom, left=left, right=right),
    )


def template_options(
    header_template: str | None = None,
    footer_template: str | None = None,
    format: PaperFormat | None = None,
    header_height: str = HEADER_MARGIN,
    footer_height: str = HEADER_MARGIN,
) -> PdfOptions:
    has_header = bool(header_template)
    has_footer = bool(footer_template)
    return PdfOptions(
        format=format or PaperFormat.A4,
        print_background=True,
        prefer_css_page_size=True,
        display_header_footer=has_header or has_footer,
        header_template=header_template if has_header else PLACEHOLDER_TEMPLATE,
        footer_template=footer_template if has_footer else PLACEHOLDER_TEMPLATE,
        margin=MarginOptions(
            top=header_height if has_header else ZERO_MARGIN,
            bottom=footer_height if has_footer else ZERO_MARGIN,
            left=ZERO_MARGIN,
            right=ZERO_MARGIN,
        ),
    )


def business_options(format: PaperFormat | None = None) -> PdfOptions:
    return clean_options(format=format, margins=("10mm",) * 4)
