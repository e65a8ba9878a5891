"""
Main FastAPI Application
Host UI surface: action events come in, a read-only view of the exam session goes out.
"""
import os
import tempfile
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel
from fastapi import Depends, FastAPI, UploadFile, File, Form, HTTPException
from fastapi.responses import FileResponse
from fastapi.middleware.cors import CORSMiddleware

from examiner import __version__
from examiner.config import DEFAULT_MCQ_TEXT, DEFAULT_QUESTION_COUNT, get_source_timeout
from examiner.controller import ExamController
from examiner.errors import ExamError, InputValidationError
from examiner.schemas import ExamSession, ScoreReport, SessionView, SourceFile
from examiner.services.ai_engine import GeminiQuestionSource
from examiner.services.doc_generator import generate_results_docx

# Setup Paths
BASE_DIR = Path(__file__).resolve().parents[2]
OUTPUT_DIR = BASE_DIR / "output"

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def get_runtime_output_dir() -> Path:
    """Resolve output directory for local dev or serverless runtime."""
    if os.getenv("VERCEL"):
        return Path(tempfile.gettempdir()) / "mcq-examiner-output"
    return OUTPUT_DIR


async def download_blob(file_url: str) -> SourceFile:
    """Download a blob URL into a SourceFile."""
    if not file_url.startswith("http"):
        raise InputValidationError(f"Invalid file_url: {file_url}")

    async with httpx.AsyncClient(timeout=60) as client:
        response = await client.get(file_url)
        response.raise_for_status()

    name = Path(urlparse(file_url).path).name or "download"
    mime_type = response.headers.get("content-type", "application/octet-stream").split(";")[0]
    return SourceFile(name=name, mime_type=mime_type, data=response.content)


async def read_uploads(files: Optional[List[UploadFile]]) -> List[SourceFile]:
    """Convert multipart uploads into SourceFile handles."""
    source_files = []
    for upload in files or []:
        source_files.append(
            SourceFile(
                name=upload.filename or "upload",
                mime_type=upload.content_type or "application/octet-stream",
                data=await upload.read(),
            )
        )
    return source_files


class PasteRequest(BaseModel):
    text: str


class AnswerRequest(BaseModel):
    choice: str


# Single in-process exam session
controller = ExamController(GeminiQuestionSource(), timeout=get_source_timeout())


def get_controller() -> ExamController:
    return controller


# Initialize FastAPI App
app = FastAPI(
    title="MCQ Examiner API",
    description="Take multiple-choice exams pasted as text or generated by AI from files",
    version=__version__
)

# CORS Middleware (Allow all origins for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def to_http_error(e: ExamError) -> HTTPException:
    """Input problems are 422; operations in the wrong phase are 409."""
    status_code = 422 if isinstance(e, InputValidationError) else 409
    return HTTPException(status_code=status_code, detail=e.message)


def apply_action(action: Callable[[], ExamSession]) -> SessionView:
    try:
        return SessionView.from_session(action())
    except ExamError as e:
        raise to_http_error(e) from e


@app.get("/")
async def read_root():
    """Return API status info."""
    return {"message": "MCQ Examiner API is running."}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "MCQ Examiner API"}


@app.get("/sample")
async def sample_text():
    """Default pasted-text input in the asterisk format."""
    return {"text": DEFAULT_MCQ_TEXT}


@app.get("/session", response_model=SessionView)
async def get_session(exam: ExamController = Depends(get_controller)):
    return SessionView.from_session(exam.session)


@app.post("/session/paste", response_model=SessionView)
async def submit_pasted_text(
    request: PasteRequest,
    exam: ExamController = Depends(get_controller),
):
    """
    Parse pasted MCQs and start the exam.

    Source failures are not HTTP errors: the session comes back in SETUP
    with its error message set.
    """
    try:
        session = await exam.submit_pasted_text(request.text)
    except ExamError as e:
        raise to_http_error(e) from e
    return SessionView.from_session(session)


@app.post("/session/generate", response_model=SessionView)
async def submit_generation_request(
    files: Optional[List[UploadFile]] = File(None, description="Source material to generate from"),
    file_urls: Optional[List[str]] = Form(default=None, description="Blob URLs to source files"),
    question_count: int = Form(
        default=DEFAULT_QUESTION_COUNT,
        description="Number of questions to generate"
    ),
    exam: ExamController = Depends(get_controller),
):
    """Generate MCQs from uploaded files (or the pending selection) and start the exam."""
    try:
        source_files = await read_uploads(files)
        for file_url in file_urls or []:
            source_files.append(await download_blob(file_url))
        session = await exam.submit_generation_request(source_files or None, question_count)
    except ExamError as e:
        raise to_http_error(e) from e
    except httpx.HTTPError as e:
        raise HTTPException(status_code=502, detail=f"Could not download file: {e}") from e
    return SessionView.from_session(session)


@app.post("/session/files", response_model=SessionView)
async def select_files(
    files: List[UploadFile] = File(..., description="Files to keep as the pending selection"),
    exam: ExamController = Depends(get_controller),
):
    source_files = await read_uploads(files)
    return apply_action(lambda: exam.select_files(source_files))


@app.post("/session/sample", response_model=SessionView)
async def start_sample_exam(exam: ExamController = Depends(get_controller)):
    return apply_action(exam.start_sample_exam)


@app.post("/session/answer", response_model=SessionView)
async def select_answer(request: AnswerRequest, exam: ExamController = Depends(get_controller)):
    return apply_action(lambda: exam.select_answer(request.choice))


@app.post("/session/next", response_model=SessionView)
async def next_question(exam: ExamController = Depends(get_controller)):
    return apply_action(exam.next_question)


@app.post("/session/previous", response_model=SessionView)
async def previous_question(exam: ExamController = Depends(get_controller)):
    return apply_action(exam.previous_question)


@app.post("/session/finish", response_model=SessionView)
async def finish_exam(exam: ExamController = Depends(get_controller)):
    return apply_action(exam.finish)


@app.post("/session/restart", response_model=SessionView)
async def restart_exam(exam: ExamController = Depends(get_controller)):
    return apply_action(exam.restart)


@app.get("/session/results", response_model=ScoreReport)
async def get_results(exam: ExamController = Depends(get_controller)):
    """Score the finished exam; can be called repeatedly."""
    try:
        return exam.score()
    except ExamError as e:
        raise to_http_error(e) from e


@app.get("/session/results/docx")
async def download_results(exam: ExamController = Depends(get_controller)):
    """Render the results view as a .docx file."""
    try:
        report = exam.score()
    except ExamError as e:
        raise to_http_error(e) from e

    output_filename = f"results_{os.urandom(4).hex()}.docx"
    runtime_output_dir = get_runtime_output_dir()
    runtime_output_dir.mkdir(parents=True, exist_ok=True)
    output_path = runtime_output_dir / output_filename
    generate_results_docx(report, str(output_path))

    return FileResponse(
        str(output_path),
        filename=output_filename,
        media_type=DOCX_MEDIA_TYPE,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
