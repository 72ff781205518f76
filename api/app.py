"""FastAPI application for the translation pipeline."""
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Dict, Optional

from fastapi import BackgroundTasks, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse

from config import Config, configure_logging
from errors import DocumentFormatError, TranslationError
from models import JobRecord
from pipeline import TranslationPipeline

logger = logging.getLogger(__name__)

app = FastAPI(title="Document Translation API", version="1.0.0")

# Configuration
config = Config.from_env()
configure_logging(config.log_level)

# In-memory job store
jobs: Dict[str, JobRecord] = {}

ALLOWED_EXTENSIONS = {".docx"}

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def validate_file_extension(filename: str) -> bool:
    """Check if file extension is allowed."""
    return Path(filename).suffix.lower() in ALLOWED_EXTENSIONS


def run_translation(job_id: str, input_path: str):
    """Background task to run the translation pipeline."""
    job = jobs[job_id]
    job.status = "running"
    start_time = time.time()
    pipeline = None

    def progress_callback(done: int, total: int, label: str):
        job.paragraphs_done = done
        job.paragraphs_total = total
        job.progress = int((done / total) * 100) if total > 0 else 0

    try:
        pipeline = TranslationPipeline(config)
        job.output_path = pipeline.translate_file(
            input_path,
            job.target_language,
            progress_callback=progress_callback,
        )
        job.status = "done"
        job.progress = 100
        job.paragraphs_done = job.paragraphs_total

    except DocumentFormatError as e:
        job.status = "failed"
        job.error = f"The uploaded file is not a valid .docx document.\n\nDetails: {e}"
        logger.error("Translation failed for job %s: %s", job_id, e)

    except (OSError, ValueError, TranslationError) as e:
        job.status = "failed"
        job.error = str(e)
        logger.error("Translation failed for job %s: %s", job_id, e)

    except Exception as e:
        # The job must never stay "running" once the task is gone
        job.status = "failed"
        job.error = f"Unexpected error: {e}"
        logger.exception("Translation failed for job %s", job_id)

    finally:
        if pipeline is not None:
            pipeline.close()
        job.duration_seconds = time.time() - start_time
        # Clean up input file after processing
        if os.path.exists(input_path):
            try:
                os.remove(input_path)
            except OSError as e:
                logger.warning("Could not remove upload %s: %s", input_path, e)


@app.post("/translate")
async def translate_file(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    target_language: Optional[str] = Form(None),
):
    """
    Upload a .docx file for translation.

    Returns immediately with a job_id. Use GET /status/{job_id} to check progress.
    """
    if not validate_file_extension(file.filename or ""):
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file format. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    job_id = str(uuid.uuid4())[:8]

    # Save uploaded file
    os.makedirs(config.upload_dir, exist_ok=True)
    input_path = os.path.join(config.upload_dir, f"{job_id}.docx")

    with open(input_path, "wb") as f:
        f.write(await file.read())

    job = JobRecord(
        job_id=job_id,
        status="pending",
        filename=file.filename,
        target_language=target_language or config.target_language,
        progress=0,
        paragraphs_total=0,
        paragraphs_done=0,
    )
    jobs[job_id] = job

    background_tasks.add_task(run_translation, job_id, input_path)

    return {
        "job_id": job_id,
        "message": "Translation job started",
        "status_url": f"/status/{job_id}"
    }


@app.get("/status/{job_id}")
async def get_status(job_id: str):
    """Get the status of a translation job."""
    if job_id not in jobs:
        raise HTTPException(status_code=404, detail="Job not found")

    job = jobs[job_id]

    return {
        "job_id": job.job_id,
        "status": job.status,
        "target_language": job.target_language,
        "progress": job.progress,
        "paragraphs_done": job.paragraphs_done,
        "paragraphs_total": job.paragraphs_total,
        "error": job.error,
        "duration_seconds": job.duration_seconds
    }


@app.get("/download/{job_id}")
async def download_file(job_id: str):
    """Download the translated file."""
    if job_id not in jobs:
        raise HTTPException(status_code=404, detail="Job not found")

    job = jobs[job_id]

    if job.status != "done":
        raise HTTPException(
            status_code=400,
            detail=f"Job is not complete. Current status: {job.status}"
        )

    if not job.output_path or not os.path.exists(job.output_path):
        raise HTTPException(status_code=404, detail="Output file not found")

    return FileResponse(
        job.output_path,
        media_type=DOCX_MEDIA_TYPE,
        filename=Path(job.output_path).name
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "provider": config.provider,
        "api_url": config.api_url,
        "model": config.model,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
