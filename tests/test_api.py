"""Tests for the HTTP job API."""
import io
import os
import tempfile
import unittest
import zipfile
from unittest.mock import patch

from fastapi.testclient import TestClient

from api import app as app_module
from config import Config
from errors import DocumentFormatError
from pipeline import TranslationPipeline


class FakePipeline:
    """Stands in for TranslationPipeline; writes a small output file."""

    fail_with = None
    instances = []

    def __init__(self, config):
        self.config = config
        self.closed = False
        self.calls = []
        FakePipeline.instances.append(self)

    def translate_file(self, input_path, target_language=None, output_path=None, progress_callback=None):
        self.calls.append((input_path, target_language))
        if self.fail_with is not None:
            raise self.fail_with
        progress_callback(1, 2, "paragraph 1")
        progress_callback(2, 2, "paragraph 2")
        output_path = os.path.join(self.config.output_dir, "translated.docx")
        with open(output_path, "wb") as f:
            f.write(b"translated bytes")
        return output_path

    def close(self):
        self.closed = True


class TranslationApiTest(unittest.TestCase):

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        config = Config(
            target_language="English",
            upload_dir=os.path.join(self.tmp.name, "uploads"),
            output_dir=os.path.join(self.tmp.name, "outputs"),
        )
        config.ensure_directories()
        FakePipeline.fail_with = None
        FakePipeline.instances = []
        for target, value in (("config", config), ("TranslationPipeline", FakePipeline), ("jobs", {})):
            patcher = patch.object(app_module, target, value)
            patcher.start()
            self.addCleanup(patcher.stop)
        self.client = TestClient(app_module.app)

    def _upload(self, filename="report.docx", **data):
        files = {"file": (filename, b"PK fake docx", "application/octet-stream")}
        return self.client.post("/translate", files=files, data=data)

    def test_job_lifecycle(self) -> None:
        response = self._upload(target_language="French")
        self.assertEqual(response.status_code, 200)
        job_id = response.json()["job_id"]
        self.assertEqual(response.json()["status_url"], f"/status/{job_id}")

        status = self.client.get(f"/status/{job_id}").json()
        self.assertEqual(status["status"], "done")
        self.assertEqual(status["target_language"], "French")
        self.assertEqual(status["progress"], 100)
        self.assertEqual(status["paragraphs_done"], 2)
        self.assertEqual(status["paragraphs_total"], 2)

        pipeline = FakePipeline.instances[0]
        input_path, target_language = pipeline.calls[0]
        self.assertEqual(target_language, "French")
        self.assertTrue(pipeline.closed)
        self.assertFalse(os.path.exists(input_path))

        download = self.client.get(f"/download/{job_id}")
        self.assertEqual(download.status_code, 200)
        self.assertEqual(download.content, b"translated bytes")

    def test_default_target_language(self) -> None:
        job_id = self._upload().json()["job_id"]
        self.assertEqual(self.client.get(f"/status/{job_id}").json()["target_language"], "English")

    def test_rejects_other_formats(self) -> None:
        response = self._upload(filename="slides.pptx")
        self.assertEqual(response.status_code, 400)

    def test_failed_job(self) -> None:
        FakePipeline.fail_with = DocumentFormatError("not a zip")
        job_id = self._upload().json()["job_id"]

        status = self.client.get(f"/status/{job_id}").json()
        self.assertEqual(status["status"], "failed")
        self.assertIn("not a valid .docx", status["error"])

        download = self.client.get(f"/download/{job_id}")
        self.assertEqual(download.status_code, 400)

    def test_unexpected_error_marks_job_failed(self) -> None:
        FakePipeline.fail_with = KeyError("There is no item named '[Content_Types].xml' in the archive")

        with self.assertLogs("api.app", level="ERROR"):
            job_id = self._upload().json()["job_id"]

        status = self.client.get(f"/status/{job_id}").json()
        self.assertEqual(status["status"], "failed")
        self.assertIn("[Content_Types].xml", status["error"])
        self.assertTrue(FakePipeline.instances[0].closed)

    def test_zip_with_only_document_xml_fails(self) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("word/document.xml", "<w:document/>")
        files = {"file": ("bare.docx", buffer.getvalue(), "application/octet-stream")}

        with patch.object(app_module, "TranslationPipeline", TranslationPipeline):
            job_id = self.client.post("/translate", files=files).json()["job_id"]

        status = self.client.get(f"/status/{job_id}").json()
        self.assertEqual(status["status"], "failed")
        self.assertTrue(status["error"])
        self.assertEqual(os.listdir(app_module.config.upload_dir), [])

    def test_unknown_job(self) -> None:
        self.assertEqual(self.client.get("/status/missing").status_code, 404)
        self.assertEqual(self.client.get("/download/missing").status_code, 404)

    def test_health(self) -> None:
        body = self.client.get("/health").json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["provider"], "openai")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
