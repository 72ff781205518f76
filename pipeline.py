"""Main translation pipeline orchestrator."""
import logging
import os
import re
import sys
from pathlib import Path
from typing import Callable, Optional

from config import Config, configure_logging
from errors import DocumentFormatError, TranslationError
from ingestion import extract_docx
from reconstruction import rebuild_docx
from translation import DocumentTranslator, create_translator

logger = logging.getLogger(__name__)


def _language_suffix(target_language: str) -> str:
    """Turn a language descriptor into a file name suffix ("Simplified Chinese" -> "simplified_chinese")."""
    suffix = re.sub(r"[^0-9a-zA-Z]+", "_", target_language).strip("_").lower()
    return suffix or "translated"


class TranslationPipeline:
    """Orchestrates load, translation and rebuild of a Word document."""

    def __init__(self, config: Optional[Config] = None, translator=None):
        self.config = config or Config.from_env()
        self.config.ensure_directories()
        self.translator = translator
        self.document_translator = None

    def _get_document_translator(self) -> DocumentTranslator:
        if self.document_translator is None:
            if self.translator is None:
                self.translator = create_translator(self.config)
            self.document_translator = DocumentTranslator(
                self.translator,
                concurrency=self.config.translation_concurrency,
            )
        return self.document_translator

    def translate_file(
        self,
        input_path: str,
        target_language: Optional[str] = None,
        output_path: Optional[str] = None,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ) -> str:
        """
        Translate a .docx file.

        Args:
            input_path: Path to input file
            target_language: Target language (defaults to config.target_language)
            output_path: Optional output path (auto-generated if not provided)
            progress_callback: Optional callback(paragraphs_done, paragraphs_total, label)

        Returns:
            Path to translated output file
        """
        if not os.path.exists(input_path):
            raise FileNotFoundError(f"File not found: {input_path}")

        if Path(input_path).suffix.lower() != ".docx":
            raise DocumentFormatError(f"Unsupported file format: {Path(input_path).suffix}")

        target_language = target_language or self.config.target_language

        document = extract_docx(input_path)

        translated = self._get_document_translator().translate_document(
            document,
            target_language,
            progress_callback=progress_callback,
        )

        if output_path is None:
            stem = Path(input_path).stem
            output_path = os.path.join(
                self.config.output_dir, f"{stem}_{_language_suffix(target_language)}.docx"
            )

        result_path = rebuild_docx(translated, output_path)
        logger.info("Wrote %s", result_path)
        return result_path

    def close(self) -> None:
        """Clean up resources."""
        if self.translator is not None:
            self.translator.close()


# CLI entry point
def main(argv=None) -> int:
    """CLI entry point for direct pipeline execution."""
    argv = sys.argv[1:] if argv is None else argv

    if len(argv) < 2:
        print("Usage: python pipeline.py <input.docx> <target_language> [output.docx]")
        return 1

    input_file = argv[0]
    target_language = argv[1]
    output_file = argv[2] if len(argv) > 2 else None

    config = Config.from_env()
    configure_logging(config.log_level)
    pipeline = TranslationPipeline(config)

    def progress_callback(done: int, total: int, label: str):
        percent = int((done / total) * 100) if total > 0 else 0
        logger.info("Progress: %d%% (%d/%d) - %s", percent, done, total, label)

    try:
        result = pipeline.translate_file(input_file, target_language, output_file, progress_callback)
        print(f"Translation complete: {result}")
        return 0
    except (OSError, ValueError, TranslationError) as e:
        logger.error("Translation failed: %s", e)
        return 1
    finally:
        pipeline.close()


if __name__ == "__main__":
    sys.exit(main())
