"""Data models for the translation pipeline."""
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union


@dataclass
class Media:
    """Binary resource embedded in a document package (image, etc.)."""
    name: str              # File name inside the package, e.g. "image1.png"
    content_type: str
    data: bytes = field(repr=False)
    # Relationship ids the source body used to reference this resource (r:embed)
    relationship_ids: List[str] = field(default_factory=list)


class MediaCatalog:
    """Ordered set of media resources, deduplicated by name.

    A catalog belongs to the document it was loaded with. Translated
    documents hold the same catalog object instead of a copy.
    """

    def __init__(self, items: Optional[List[Media]] = None):
        self._items: Dict[str, Media] = {}
        for media in items or []:
            self.add(media)

    def add(self, media: Media) -> Media:
        """Register a resource; the first one registered under a name wins."""
        return self._items.setdefault(media.name, media)

    def get(self, name: str) -> Optional[Media]:
        return self._items.get(name)

    def names(self) -> List[str]:
        return list(self._items)

    def __iter__(self) -> Iterator[Media]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __repr__(self) -> str:
        return f"MediaCatalog({self.names()!r})"


@dataclass
class PageSetup:
    """Page size and margins in millimetres (A4 portrait by default)."""
    width_mm: float = 210.0
    height_mm: float = 297.0
    margin_top_mm: float = 25.4
    margin_bottom_mm: float = 25.4
    margin_left_mm: float = 25.4
    margin_right_mm: float = 25.4


@dataclass
class TextSpan:
    """Atomic text fragment inside a run."""
    text: str


@dataclass
class Run:
    """Formatting-homogeneous container of text spans."""
    properties: Optional[str] = None   # Raw w:rPr XML, copied verbatim
    spans: List[TextSpan] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)


@dataclass
class Paragraph:
    """Paragraph with its formatting and ordered runs.

    ``xml`` holds the source w:p element when the paragraph was loaded from
    a file. It keeps content the run model has no place for (drawings,
    fields, bookmarks) and is written back as is. Paragraphs built from
    new text never carry it.
    """
    properties: Optional[str] = None   # Raw w:pPr XML, copied verbatim
    runs: List[Run] = field(default_factory=list)
    xml: Optional[str] = field(default=None, repr=False)

    @property
    def text(self) -> str:
        """Flattened text: every span of every run, in order, no separators."""
        return "".join(run.text for run in self.runs)


@dataclass
class TableCell:
    """Single table cell; holds one or more paragraphs."""
    properties: Optional[str] = None   # Raw w:tcPr XML
    paragraphs: List[Paragraph] = field(default_factory=list)


@dataclass
class TableRow:
    """Row with a sequence of cells."""
    cells: List[TableCell] = field(default_factory=list)
    properties: Optional[str] = None   # Raw w:trPr XML


@dataclass
class Table:
    """Rectangular table; every row shares the first row's column count."""
    properties: Optional[str] = None   # Raw w:tblPr XML
    grid: Optional[str] = None         # Raw w:tblGrid XML
    rows: List[TableRow] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.rows[0].cells) if self.rows else 0


@dataclass(frozen=True)
class OpaqueBlock:
    """Body element that is neither a paragraph nor a table, kept as raw XML."""
    xml: str
    tag: str = ""


BodyItem = Union[Paragraph, Table, OpaqueBlock]


@dataclass
class Document:
    """Root container: ordered body plus the media it references."""
    body: List[BodyItem] = field(default_factory=list)
    media: MediaCatalog = field(default_factory=MediaCatalog)
    page: PageSetup = field(default_factory=PageSetup)

    @property
    def paragraphs(self) -> List[Paragraph]:
        """Top-level paragraphs only (table cells excluded)."""
        return [item for item in self.body if isinstance(item, Paragraph)]

    @property
    def tables(self) -> List[Table]:
        return [item for item in self.body if isinstance(item, Table)]


@dataclass
class JobRecord:
    """Job record for API layer job tracking."""
    job_id: str
    status: str            # "pending" | "running" | "done" | "failed"
    filename: str          # Original uploaded filename
    target_language: str
    progress: int          # 0–100
    paragraphs_total: int
    paragraphs_done: int
    output_path: Optional[str] = None  # Path to the translated output file
    error: Optional[str] = None        # Error message if status == "failed"
    duration_seconds: float = 0.0
