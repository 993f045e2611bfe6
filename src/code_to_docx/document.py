from __future__ import annotations

from collections.abc import Sequence
from typing import IO, Protocol

from docx import Document
from docx.enum.style import WD_STYLE_TYPE
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt

from .config import StyleConfig

TITLE_TEXT = "Source Code"
TOC_ALIAS = "Table of contents"
TOC_LEVELS = (1, 3)
CODE_FONT_FAMILY = "Courier New"
CODE_TABLE_STYLE = "Table Grid"

# Theme references on w:rFonts win over explicit family names in Word.
_THEME_FONT_ATTRS = ("w:asciiTheme", "w:hAnsiTheme", "w:eastAsiaTheme", "w:cstheme")


class DocumentBuilder(Protocol):
    def register_heading_style(
        self, level: int, *, font_size: int | None = None, font_family: str | None = None
    ) -> None:  # pragma: no cover - interface
        ...

    def add_heading(self, text: str, *, level: int, page_break_before: bool = False) -> None:  # pragma: no cover - interface
        ...

    def add_table_of_contents(
        self, *, levels: tuple[int, int], alias: str, auto_update: bool = True
    ) -> None:  # pragma: no cover - interface
        ...

    def add_code_table(
        self, lines: Sequence[str], *, font_size: int, font_family: str = CODE_FONT_FAMILY
    ) -> None:  # pragma: no cover - interface
        ...

    def save(self, stream: IO[bytes]) -> None:  # pragma: no cover - interface
        ...


def _heading_style_name(level: int) -> str:
    return f"Heading {level}"


def _run(*children: OxmlElement) -> OxmlElement:
    run = OxmlElement("w:r")
    for child in children:
        run.append(child)
    return run


def _fld_char(kind: str, *, dirty: bool = False) -> OxmlElement:
    element = OxmlElement("w:fldChar")
    element.set(qn("w:fldCharType"), kind)
    if dirty:
        element.set(qn("w:dirty"), "true")
    return element


def _append_text(r: OxmlElement, text: str) -> None:
    # add_run() turns "\r" into w:br; write w:t and w:tab by hand so a line
    # keeps its exact characters.
    for index, chunk in enumerate(text.split("\t")):
        if index:
            r.append(OxmlElement("w:tab"))
        if chunk:
            t = OxmlElement("w:t")
            t.set(qn("xml:space"), "preserve")
            t.text = chunk
            r.append(t)


class DocxDocumentBuilder:
    """``DocumentBuilder`` backed by a python-docx ``Document``."""

    def __init__(self) -> None:
        self._document = Document()

    def register_heading_style(
        self, level: int, *, font_size: int | None = None, font_family: str | None = None
    ) -> None:
        name = _heading_style_name(level)
        styles = self._document.styles
        try:
            style = styles[name]
        except KeyError:
            style = styles.add_style(name, WD_STYLE_TYPE.PARAGRAPH)
            style.base_style = styles["Normal"]
        if font_size is not None:
            style.font.size = Pt(font_size)
        if font_family is not None:
            style.font.name = font_family
            rfonts = style.element.rPr.rFonts
            for attr in _THEME_FONT_ATTRS:
                rfonts.attrib.pop(qn(attr), None)

    def add_heading(self, text: str, *, level: int, page_break_before: bool = False) -> None:
        paragraph = self._document.add_paragraph(style=_heading_style_name(level))
        paragraph.add_run(text)
        if page_break_before:
            paragraph.paragraph_format.page_break_before = True

    def add_table_of_contents(
        self, *, levels: tuple[int, int], alias: str, auto_update: bool = True
    ) -> None:
        sdt = OxmlElement("w:sdt")
        sdt_pr = OxmlElement("w:sdtPr")
        alias_el = OxmlElement("w:alias")
        alias_el.set(qn("w:val"), alias)
        sdt_pr.append(alias_el)
        doc_part = OxmlElement("w:docPartObj")
        gallery = OxmlElement("w:docPartGallery")
        gallery.set(qn("w:val"), "Table of Contents")
        doc_part.append(gallery)
        doc_part.append(OxmlElement("w:docPartUnique"))
        sdt_pr.append(doc_part)
        sdt.append(sdt_pr)

        instr = OxmlElement("w:instrText")
        instr.set(qn("xml:space"), "preserve")
        first, last = levels
        instr.text = f'TOC \\o "{first}-{last}" \\h \\z \\u'
        placeholder = OxmlElement("w:t")
        placeholder.text = "Update field to see table of contents"

        paragraph = OxmlElement("w:p")
        paragraph.append(_run(_fld_char("begin", dirty=auto_update)))
        paragraph.append(_run(instr))
        paragraph.append(_run(_fld_char("separate")))
        paragraph.append(_run(placeholder))
        paragraph.append(_run(_fld_char("end")))
        content = OxmlElement("w:sdtContent")
        content.append(paragraph)
        sdt.append(content)

        body = self._document.element.body
        sect_pr = body.find(qn("w:sectPr"))
        if sect_pr is not None:
            sect_pr.addprevious(sdt)
        else:
            body.append(sdt)

    def add_code_table(
        self, lines: Sequence[str], *, font_size: int, font_family: str = CODE_FONT_FAMILY
    ) -> None:
        table = self._document.add_table(rows=1, cols=1)
        table.style = CODE_TABLE_STYLE
        cell = table.cell(0, 0)
        # A new cell starts with one empty paragraph; the first line reuses it.
        placeholder = cell.paragraphs[0]
        if not lines:
            placeholder._p.getparent().remove(placeholder._p)
            return
        for index, line in enumerate(lines):
            paragraph = placeholder if index == 0 else cell.add_paragraph()
            run = paragraph.add_run()
            run.font.name = font_family
            run.font.size = Pt(font_size)
            _append_text(run._r, line)
            paragraph.paragraph_format.space_after = Pt(0)

    def save(self, stream: IO[bytes]) -> None:
        self._document.save(stream)


def new_document(style: StyleConfig, builder: DocumentBuilder | None = None) -> DocumentBuilder:
    """Seed a document with the heading styles, the title and the table of contents."""

    builder = builder if builder is not None else DocxDocumentBuilder()
    builder.register_heading_style(1)
    builder.register_heading_style(
        2,
        font_size=style.heading_font_size,
        font_family=style.heading_font_family,
    )
    builder.add_heading(TITLE_TEXT, level=1)
    builder.add_table_of_contents(levels=TOC_LEVELS, alias=TOC_ALIAS, auto_update=True)
    return builder


__all__ = [
    "CODE_FONT_FAMILY",
    "DocumentBuilder",
    "DocxDocumentBuilder",
    "TITLE_TEXT",
    "TOC_ALIAS",
    "new_document",
]
