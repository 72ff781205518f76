"""Shared test doubles and document factories."""
import base64
import threading

from models import Paragraph, Run, Table, TableCell, TableRow, TextSpan

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def w_xml(tag: str, inner: str = "") -> str:
    """Build a namespaced WordprocessingML fragment, e.g. w_xml("rPr", "<w:b/>")."""
    return f'<w:{tag} xmlns:w="{W_NS}">{inner}</w:{tag}>'


def make_paragraph(*texts, properties=None, run_properties=None) -> Paragraph:
    """One run per text; run N gets run_properties[N] when given."""
    run_properties = run_properties or [None] * len(texts)
    runs = [Run(properties=props, spans=[TextSpan(text)]) for text, props in zip(texts, run_properties)]
    return Paragraph(properties=properties, runs=runs)


def make_table(texts, properties=None, grid=None) -> Table:
    """Table from a list of rows of cell texts; "" gives a cell with an empty paragraph."""
    rows = []
    for row_texts in texts:
        cells = []
        for text in row_texts:
            paragraph = make_paragraph(text) if text else Paragraph()
            cells.append(TableCell(properties=w_xml("tcPr"), paragraphs=[paragraph]))
        rows.append(TableRow(cells=cells))
    return Table(properties=properties, grid=grid, rows=rows)


class FakeTranslator:
    """In-memory provider recording every call."""

    def __init__(self, mapping=None, error=None):
        self.mapping = mapping
        self.error = error
        self.calls = []
        self.timeouts = []
        self.closed = False
        self._lock = threading.Lock()

    def translate(self, text, target_language, timeout=None):
        with self._lock:
            self.calls.append((text, target_language))
            self.timeouts.append(timeout)
        if self.error is not None:
            raise self.error
        if self.mapping is not None and text in self.mapping:
            return self.mapping[text]
        return f"[{target_language}] {text}"

    def close(self):
        self.closed = True
