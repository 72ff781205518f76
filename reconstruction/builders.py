"""Document construction and DOCX serialization."""
import logging
from typing import Dict, Optional

from docx import Document as WordDocument
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.packuri import PackURI
from docx.opc.part import Part
from docx.oxml import OxmlElement, parse_xml
from docx.oxml.ns import qn
from docx.shared import Mm

from errors import UnsupportedBlockError
from models import (
    BodyItem,
    Document,
    MediaCatalog,
    OpaqueBlock,
    PageSetup,
    Paragraph,
    Run,
    Table,
    TableCell,
    TableRow,
    TextSpan,
)

logger = logging.getLogger(__name__)

MEDIA_PREFIX = "/word/media/"

# Attributes that point at a relationship of the document part
REL_ATTRS = (qn("r:embed"), qn("r:link"), qn("r:id"))


def new_document(media: Optional[MediaCatalog] = None, page: Optional[PageSetup] = None) -> Document:
    """
    Create an empty document with default page setup (A4).

    When ``media`` is given the new document holds that catalog itself,
    not a copy, so both documents share the same resources.
    """
    return Document(
        body=[],
        media=media if media is not None else MediaCatalog(),
        page=page or PageSetup(),
    )


def add_table(
    document: Document,
    rows: int,
    cols: int,
    properties: Optional[str] = None,
    grid: Optional[str] = None,
) -> Table:
    """Append an empty ``rows`` x ``cols`` table to the body and return it."""
    table = Table(
        properties=properties,
        grid=grid,
        rows=[
            TableRow(cells=[TableCell(paragraphs=[Paragraph()]) for _ in range(cols)])
            for _ in range(rows)
        ],
    )
    document.body.append(table)
    return table


def build_paragraph(source: Paragraph, text: str) -> Paragraph:
    """
    Build a paragraph holding ``text`` in a single run.

    Paragraph properties are taken from ``source`` and the run reuses the
    properties of ``source``'s first run. Formatting that differed between
    the original runs (partial bold, italics...) is lost. A source without
    runs yields a paragraph without runs.
    """
    runs = []
    if source.runs:
        runs.append(Run(properties=source.runs[0].properties, spans=[TextSpan(text)]))
    return Paragraph(properties=source.properties, runs=runs)


def _paragraph_element(paragraph: Paragraph):
    if paragraph.xml:
        return parse_xml(paragraph.xml)
    p = OxmlElement("w:p")
    if paragraph.properties:
        p.append(parse_xml(paragraph.properties))
    for run in paragraph.runs:
        r = OxmlElement("w:r")
        if run.properties:
            r.append(parse_xml(run.properties))
        # The run text setter turns "\t" and "\n" into w:tab and w:br
        r.text = run.text
        p.append(r)
    return p


def _table_element(table: Table):
    tbl = OxmlElement("w:tbl")
    tbl.append(parse_xml(table.properties) if table.properties else OxmlElement("w:tblPr"))

    if table.grid:
        tbl.append(parse_xml(table.grid))
    else:
        tbl_grid = OxmlElement("w:tblGrid")
        for _ in range(table.column_count):
            tbl_grid.append(OxmlElement("w:gridCol"))
        tbl.append(tbl_grid)

    for row in table.rows:
        tr = OxmlElement("w:tr")
        if row.properties:
            tr.append(parse_xml(row.properties))
        for cell in row.cells:
            tc = OxmlElement("w:tc")
            if cell.properties:
                tc.append(parse_xml(cell.properties))
            for paragraph in cell.paragraphs:
                tc.append(_paragraph_element(paragraph))
            if not cell.paragraphs:
                # A cell must end with a paragraph
                tc.append(OxmlElement("w:p"))
            tr.append(tc)
        tbl.append(tr)
    return tbl


def _body_element(item: BodyItem):
    if isinstance(item, Paragraph):
        return _paragraph_element(item)
    if isinstance(item, Table):
        return _table_element(item)
    if isinstance(item, OpaqueBlock):
        return parse_xml(item.xml)
    raise UnsupportedBlockError(f"Cannot serialize body item of type {type(item).__name__}")


def _apply_page_setup(word_doc, page: PageSetup) -> None:
    section = word_doc.sections[0]
    section.page_width = Mm(page.width_mm)
    section.page_height = Mm(page.height_mm)
    section.top_margin = Mm(page.margin_top_mm)
    section.bottom_margin = Mm(page.margin_bottom_mm)
    section.left_margin = Mm(page.margin_left_mm)
    section.right_margin = Mm(page.margin_right_mm)


def _add_media(word_doc, media: MediaCatalog) -> Dict[str, str]:
    """
    Store each media resource under its own name and relate it to the
    document part. Returns the source relationship ids mapped to the new ones.
    """
    document_part = word_doc.part
    rel_map: Dict[str, str] = {}
    for item in media:
        part = Part(PackURI(MEDIA_PREFIX + item.name), item.content_type, item.data, document_part.package)
        rId = document_part.relate_to(part, RT.IMAGE)
        for source_rId in item.relationship_ids:
            rel_map[source_rId] = rId
        logger.debug("Added media %s as %s", item.name, rId)
    return rel_map


def _remap_relationships(body, rel_map: Dict[str, str]) -> None:
    # Each attribute is read once, so a new id is never mapped a second time
    for element in body.iter():
        for attr in REL_ATTRS:
            value = element.get(attr)
            if value in rel_map:
                element.set(attr, rel_map[value])


def rebuild_docx(document: Document, output_path: str) -> str:
    """
    Write a document model to a .docx file.

    Starts from python-docx's default template, applies the page setup and
    writes body items in order. The media catalog is stored in the package
    under the original part names, and image references in paragraphs kept
    from the source (r:embed and friends) are pointed at the new
    relationship ids so drawings still resolve.
    """
    word_doc = WordDocument()
    body = word_doc.element.body

    # Drop template content but keep the section properties
    for child in list(body.iterchildren()):
        if child.tag != qn("w:sectPr"):
            body.remove(child)

    _apply_page_setup(word_doc, document.page)

    for item in document.body:
        body.insert_element_before(_body_element(item), "w:sectPr")

    _remap_relationships(body, _add_media(word_doc, document.media))

    word_doc.save(output_path)
    return output_path
