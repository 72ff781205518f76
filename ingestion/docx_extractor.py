"""DOCX loading into the document model."""
import logging
import os
import posixpath
import zipfile
from typing import Dict, List, Optional

from docx import Document as WordDocument
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml.ns import qn
from docx.oxml.table import CT_Tbl
from docx.oxml.text.paragraph import CT_P
from lxml import etree

from errors import DocumentFormatError
from models import (
    BodyItem,
    Document,
    Media,
    MediaCatalog,
    OpaqueBlock,
    Paragraph,
    Run,
    Table,
    TableCell,
    TableRow,
    TextSpan,
)

logger = logging.getLogger(__name__)

MEDIA_PREFIX = "/word/media/"

# Runs directly in the paragraph or wrapped in a hyperlink / tracked insertion
RUN_XPATH = "./w:r | ./w:hyperlink/w:r | ./w:ins/w:r | ./w:smartTag/w:r"


def _is_valid_docx(file_path: str) -> bool:
    """Check if file is a valid .docx file (Office Open XML format)."""
    try:
        # .docx files are actually ZIP archives
        with zipfile.ZipFile(file_path, "r") as zip_ref:
            return "word/document.xml" in zip_ref.namelist()
    except (zipfile.BadZipFile, OSError):
        return False


def _xml(element) -> Optional[str]:
    """Serialize a property element so it can be copied verbatim later."""
    if element is None:
        return None
    return etree.tostring(element, encoding="unicode")


def _run_spans(r) -> List[TextSpan]:
    spans = []
    for child in r.iterchildren():
        if child.tag == qn("w:t"):
            spans.append(TextSpan(child.text or ""))
        elif child.tag == qn("w:tab"):
            spans.append(TextSpan("\t"))
        elif child.tag in (qn("w:br"), qn("w:cr")):
            spans.append(TextSpan("\n"))
    return spans


def _extract_paragraph(p) -> Paragraph:
    runs = [Run(properties=_xml(r.rPr), spans=_run_spans(r)) for r in p.xpath(RUN_XPATH)]
    return Paragraph(properties=_xml(p.pPr), runs=runs, xml=_xml(p))


def _extract_table(tbl) -> Table:
    rows = []
    for tr in tbl.xpath("./w:tr"):
        cells = []
        for tc in tr.xpath("./w:tc"):
            if tc.xpath("./w:tbl"):
                logger.warning("Nested table inside a cell is not supported and was dropped")
            cells.append(TableCell(
                properties=_xml(tc.tcPr),
                paragraphs=[_extract_paragraph(p) for p in tc.xpath("./w:p")],
            ))
        rows.append(TableRow(cells=cells, properties=_xml(tr.trPr)))
    return Table(
        properties=_xml(tbl.find(qn("w:tblPr"))),
        grid=_xml(tbl.find(qn("w:tblGrid"))),
        rows=rows,
    )


def _media_relationships(word_doc) -> Dict[str, List[str]]:
    """Map media part names to the document part's relationship ids for them."""
    rel_ids: Dict[str, List[str]] = {}
    for rel in word_doc.part.rels.values():
        if rel.is_external:
            continue
        partname = str(rel.target_part.partname)
        if partname.startswith(MEDIA_PREFIX):
            rel_ids.setdefault(partname, []).append(rel.rId)
    return rel_ids


def _extract_media(word_doc) -> MediaCatalog:
    catalog = MediaCatalog()
    rel_ids = _media_relationships(word_doc)
    for part in word_doc.part.package.iter_parts():
        partname = str(part.partname)
        if partname.startswith(MEDIA_PREFIX):
            catalog.add(Media(
                name=posixpath.basename(partname),
                content_type=part.content_type,
                data=part.blob,
                relationship_ids=sorted(rel_ids.get(partname, [])),
            ))
    return catalog


def extract_docx(file_path: str) -> Document:
    """
    Load a Word document into the document model.

    Body paragraphs and tables are converted; other body elements are kept
    as opaque blocks. The section properties of the source are not carried.
    """
    if file_path.lower().endswith(".doc"):
        raise DocumentFormatError(
            "The .doc format (old binary Word format) is not supported. "
            "Please convert your file to .docx format first."
        )

    if not _is_valid_docx(file_path):
        raise DocumentFormatError(
            f"The file '{os.path.basename(file_path)}' is not a valid Word document (.docx)."
        )

    try:
        word_doc = WordDocument(file_path)
    except (KeyError, PackageNotFoundError, etree.XMLSyntaxError) as e:
        # A zip holding word/document.xml can still lack the package parts
        raise DocumentFormatError(
            f"The file '{os.path.basename(file_path)}' is not a valid Word document (.docx): {e}"
        ) from e

    body: List[BodyItem] = []
    for child in word_doc.element.body.iterchildren():
        if isinstance(child, CT_P):
            body.append(_extract_paragraph(child))
        elif isinstance(child, CT_Tbl):
            body.append(_extract_table(child))
        elif not isinstance(child.tag, str) or child.tag == qn("w:sectPr"):
            # Comments, processing instructions and the section properties
            continue
        else:
            body.append(OpaqueBlock(xml=_xml(child), tag=etree.QName(child).localname))

    media = _extract_media(word_doc)
    logger.info(
        "Loaded %s: %d body items, %d media resources",
        os.path.basename(file_path), len(body), len(media),
    )
    return Document(body=body, media=media)
