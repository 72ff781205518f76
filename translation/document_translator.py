"""Structure-preserving translation of a document tree."""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, List, Optional

from errors import ProviderCallError, StructuralError, UnsupportedBlockError
from models import Document, OpaqueBlock, Paragraph, Table
from reconstruction.builders import add_table, build_paragraph, new_document
from translation.llm_translator import BaseTranslator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


def _is_blank(text: str) -> bool:
    return not text.strip()


def _check_table(table: Table, index: int) -> None:
    if not table.rows:
        raise StructuralError(f"Table at body index {index} has no rows")
    columns = table.column_count
    for row_index, row in enumerate(table.rows):
        if len(row.cells) != columns:
            raise StructuralError(
                f"Table at body index {index}: row {row_index} has {len(row.cells)} cells, "
                f"expected {columns} like the first row"
            )


def _iter_paragraphs(document: Document) -> Iterator[Paragraph]:
    """Yield every paragraph in reading order, table cells row by row."""
    for index, item in enumerate(document.body):
        if isinstance(item, Paragraph):
            yield item
        elif isinstance(item, Table):
            _check_table(item, index)
            for row in item.rows:
                for cell in row.cells:
                    yield from cell.paragraphs
        elif not isinstance(item, OpaqueBlock):
            raise UnsupportedBlockError(
                f"Unsupported body item at index {index}: {type(item).__name__}"
            )


class DocumentTranslator:
    """
    Translate every paragraph of a document into a new, parallel document.

    Each non-blank paragraph is sent to the provider exactly once. The
    rebuilt paragraph keeps its paragraph properties but its runs are
    collapsed into a single run formatted like the first original run:
    the provider returns one string, so inline formatting changes inside
    a paragraph cannot be mapped back onto the translation.

    Blank paragraphs and opaque blocks are reused as-is, and the media
    catalog is shared with the source. Nothing in the source document is
    modified.
    """

    def __init__(self, translator: BaseTranslator, concurrency: int = 1):
        self.translator = translator
        self.concurrency = max(1, concurrency)

    def _translate_text(self, text: str, target_language: str, timeout: Optional[float] = None) -> str:
        """Translate one paragraph text, falling back to the original on provider failure."""
        try:
            return self.translator.translate(text, target_language, timeout=timeout)
        except ProviderCallError as e:
            logger.warning("Error translating paragraph: %s. Keeping original text.", e)
            return text

    def translate_paragraph(
        self,
        paragraph: Paragraph,
        target_language: str,
        timeout: Optional[float] = None,
    ) -> Paragraph:
        """
        Translate a single paragraph.

        Returns ``paragraph`` itself when its flattened text is empty or
        whitespace only; otherwise a new paragraph with one run holding the
        translation (or the original text if the provider call failed).
        """
        text = paragraph.text
        if _is_blank(text):
            return paragraph
        return build_paragraph(paragraph, self._translate_text(text, target_language, timeout))

    def _translate_texts(
        self,
        texts: List[str],
        target_language: str,
        progress_callback: Optional[ProgressCallback],
        timeout: Optional[float],
    ) -> List[str]:
        total = len(texts)
        done = 0
        lock = threading.Lock()

        def translate_one(item) -> str:
            nonlocal done
            index, text = item
            translated = self._translate_text(text, target_language, timeout)
            if progress_callback:
                with lock:
                    done += 1
                    progress_callback(done, total, f"paragraph {index + 1}")
            return translated

        if self.concurrency == 1 or total <= 1:
            return [translate_one(item) for item in enumerate(texts)]

        # map() yields results in input order, whatever order calls finish in
        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            return list(executor.map(translate_one, enumerate(texts)))

    def translate_document(
        self,
        document: Document,
        target_language: str,
        progress_callback: Optional[ProgressCallback] = None,
        timeout: Optional[float] = None,
    ) -> Document:
        """
        Translate a document.

        Args:
            document: Source document, left untouched
            target_language: Language descriptor passed to the provider
            progress_callback: Optional callback(paragraphs_done, paragraphs_total, label)
            timeout: Per-request timeout forwarded to the provider

        Returns:
            A new document with the same body shape

        Raises:
            StructuralError: a table is empty or not rectangular, or a body
                item has an unknown type. Raised before any provider call.
        """
        pending = [p for p in _iter_paragraphs(document) if not _is_blank(p.text)]
        translations = iter(self._translate_texts(
            [p.text for p in pending], target_language, progress_callback, timeout
        ))

        def rebuild(paragraph: Paragraph) -> Paragraph:
            if _is_blank(paragraph.text):
                return paragraph
            return build_paragraph(paragraph, next(translations))

        new_doc = new_document(media=document.media)
        for item in document.body:
            if isinstance(item, Paragraph):
                new_doc.body.append(rebuild(item))
            elif isinstance(item, Table):
                new_table = add_table(
                    new_doc,
                    item.row_count,
                    item.column_count,
                    properties=item.properties,
                    grid=item.grid,
                )
                for i, row in enumerate(item.rows):
                    new_row = new_table.rows[i]
                    new_row.properties = row.properties
                    for j, cell in enumerate(row.cells):
                        new_cell = new_row.cells[j]
                        new_cell.properties = cell.properties
                        new_cell.paragraphs = [rebuild(p) for p in cell.paragraphs]
            else:
                new_doc.body.append(item)

        logger.info(
            "Translated %d paragraphs into %s (%d body items)",
            len(pending), target_language, len(new_doc.body),
        )
        return new_doc
