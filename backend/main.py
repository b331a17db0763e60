# backend/main.py
"""
FastAPI application for the multi-step form runtime
Hosts form-filling sessions: responses, step validation, document upload, quotations
"""

import logging
import os
import time
from typing import Dict, Optional
from fastapi import FastAPI, UploadFile, File, Form, HTTPException
from fastapi.responses import FileResponse
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from models import (
    AdvanceResponse,
    FormRecord,
    IconModeRequest,
    QuotationRequest,
    QuotationResponse,
    ResponseUpdate,
    SaveFormRequest,
    SessionState,
    StepValidityResponse,
    TempResponseUpdate,
    ThemeUpdate,
    ToggleRequest,
)
from document_handler import build_upload_response, extract_document_text, render_staged_document_html
from form_session import FormSession
from form_store import FormNotFoundError, FormStore
from llm_handler import generate_quotation
from step_validator import find_document_upload_step, toggle_option
from config import settings

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("form_runtime")

# Create FastAPI app
app = FastAPI(
    title="Multi-Step Form Runtime",
    description="Fill in LLM-generated multi-step forms, upload documents and get quotations",
    version="1.0.0"
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# In-memory storage
form_store = FormStore()
sessions: Dict[int, FormSession] = {}


def get_session(session_id: int) -> FormSession:
    if session_id not in sessions:
        raise HTTPException(status_code=404, detail="Session not found")
    return sessions[session_id]


def get_form_record(form_id: int) -> FormRecord:
    try:
        return form_store.get_form(form_id)
    except FormNotFoundError:
        raise HTTPException(status_code=404, detail="Form not found")


def session_state(session: FormSession) -> SessionState:
    return SessionState.model_validate(session.snapshot())


def discard_upload(file_path: str) -> None:
    try:
        os.remove(file_path)
    except FileNotFoundError:
        pass


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "ok",
        "model": settings.openai_model,
        "service": "Multi-Step Form Runtime"
    }


# ----------------------------------------------------------------------
# Forms
# ----------------------------------------------------------------------

@app.post("/api/forms", response_model=FormRecord)
async def save_form(request: SaveFormRequest):
    """Persist a form config produced by the generation service"""
    return form_store.save_form(request.config, request.prompt_history, request.icon_mode)


@app.get("/api/forms/{form_id}", response_model=FormRecord)
async def get_form(form_id: int):
    return get_form_record(form_id)


@app.put("/api/forms/{form_id}", response_model=FormRecord)
async def update_form(form_id: int, request: SaveFormRequest):
    get_form_record(form_id)
    return form_store.update_form(form_id, request.config, request.prompt_history, request.icon_mode)


@app.put("/api/forms/{form_id}/icon-mode", response_model=FormRecord)
async def update_icon_mode(form_id: int, request: IconModeRequest):
    get_form_record(form_id)
    return form_store.set_icon_mode(form_id, request.icon_mode)


@app.post("/api/forms/{form_id}/session", response_model=SessionState)
async def create_session(form_id: int):
    """
    Start a new form-filling session for a persisted form

    Every session starts fresh: step 1, no responses, empty staged snapshot.
    """
    record = get_form_record(form_id)
    info = form_store.create_session(form_id)

    session = FormSession(form_store=form_store)
    session.set_form_config(record.config)
    session.set_form_id(record.id)
    session.prompt_history = list(record.prompt_history)
    session.icon_mode = record.icon_mode
    session.session_id = info["sessionId"]
    session.session_no = info["sessionNo"]
    sessions[session.session_id] = session

    return session_state(session)


# ----------------------------------------------------------------------
# Sessions
# ----------------------------------------------------------------------

@app.get("/api/sessions/{session_id}", response_model=SessionState)
async def get_session_state(session_id: int):
    return session_state(get_session(session_id))


@app.post("/api/sessions/{session_id}/responses", response_model=SessionState)
async def update_response(session_id: int, request: ResponseUpdate):
    """Record the answer for one step"""
    session = get_session(session_id)
    session.update_response(request.step_title, request.value)
    return session_state(session)


@app.post("/api/sessions/{session_id}/toggle", response_model=SessionState)
async def toggle_response_option(session_id: int, request: ToggleRequest):
    """Toggle one option of a multiSelect step"""
    session = get_session(session_id)
    selected = toggle_option(session.form_responses.get(request.step_title), request.option_id)
    session.update_response(request.step_title, selected)
    return session_state(session)


@app.post("/api/sessions/{session_id}/upload", response_model=SessionState)
async def upload_document(
    session_id: int,
    file: UploadFile = File(...),
    step_title: Optional[str] = Form(default=None, alias="stepTitle"),
):
    """
    Upload a document for the documentUpload step

    The extracted text is recorded with the step response, which also
    stages it as documentContent for quotation generation.
    """
    session = get_session(session_id)

    if step_title is None:
        upload_step = find_document_upload_step(session.steps)
        if upload_step is None:
            raise HTTPException(status_code=400, detail="Form has no document upload step")
        step_title = upload_step.title

    # Validate file type
    filename = os.path.basename(file.filename or "")
    extension = os.path.splitext(filename)[1].lower()
    if extension not in settings.allowed_file_types:
        allowed = ", ".join(settings.allowed_file_types)
        raise HTTPException(status_code=400, detail=f"Only {allowed} files supported")

    content = await file.read()

    # Validate file size
    if len(content) > settings.max_file_size_mb * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"File too large (max {settings.max_file_size_mb}MB)"
        )

    session_dir = os.path.join(settings.upload_dir, str(session_id))
    os.makedirs(session_dir, exist_ok=True)
    stored_name = f"{int(time.time() * 1000)}_{filename}"
    file_path = os.path.join(session_dir, stored_name)

    try:
        with open(file_path, "wb") as f:
            f.write(content)
        extracted_text = extract_document_text(file_path)
    except ValueError as e:
        discard_upload(file_path)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("❌ Upload error: %s", e)
        discard_upload(file_path)
        raise HTTPException(status_code=500, detail=f"Error: {str(e)}")

    document_url = f"/uploads/{session_id}/{stored_name}"
    session.update_response(step_title, build_upload_response(filename, document_url, extracted_text))
    logger.info("✓ Uploaded %s for step '%s' (%d chars)", filename, step_title, len(extracted_text))

    return session_state(session)


@app.get("/uploads/{session_id}/{stored_name}")
async def download_upload(session_id: int, stored_name: str):
    """Serve a stored upload; this is the documentUrl recorded for the step"""
    if stored_name != os.path.basename(stored_name) or stored_name.startswith("."):
        raise HTTPException(status_code=404, detail="File not found")

    file_path = os.path.join(settings.upload_dir, str(session_id), stored_name)
    if not os.path.isfile(file_path):
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(file_path, filename=stored_name.split("_", 1)[-1])


@app.post("/api/sessions/{session_id}/next", response_model=SessionState)
async def next_step(session_id: int):
    session = get_session(session_id)
    session.next_step()
    return session_state(session)


@app.post("/api/sessions/{session_id}/prev", response_model=SessionState)
async def prev_step(session_id: int):
    session = get_session(session_id)
    session.prev_step()
    return session_state(session)


@app.post("/api/sessions/{session_id}/advance", response_model=AdvanceResponse)
async def advance(session_id: int):
    """Move to the next step only if the current one validates"""
    session = get_session(session_id)
    result = session.advance()
    if not result.ok:
        raise HTTPException(status_code=400, detail=result.error)
    return AdvanceResponse(ok=True, current_step=result.current_step)


@app.get("/api/sessions/{session_id}/steps/{step_index}/valid", response_model=StepValidityResponse)
async def step_validity(session_id: int, step_index: int):
    session = get_session(session_id)
    return StepValidityResponse(step_index=step_index, valid=session.is_step_valid(step_index))


@app.post("/api/sessions/{session_id}/reset", response_model=SessionState)
async def reset_responses(session_id: int):
    session = get_session(session_id)
    session.reset_responses()
    return session_state(session)


@app.post("/api/sessions/{session_id}/reset-server-config", response_model=SessionState)
async def reset_server_config(session_id: int):
    """Reload the last persisted version of the form into this session"""
    session = get_session(session_id)
    session.reset_server_config()
    return session_state(session)


@app.patch("/api/sessions/{session_id}/theme", response_model=SessionState)
async def update_theme(session_id: int, request: ThemeUpdate):
    session = get_session(session_id)
    if request.color_type and request.color_value is not None:
        session.update_theme_color(request.color_type, request.color_value)
    if request.font_family:
        session.update_font_family(request.font_family)
    return session_state(session)


@app.patch("/api/sessions/{session_id}/temp-response")
async def update_temp_response(session_id: int, request: TempResponseUpdate):
    get_session(session_id)
    form_store.update_temp_response(session_id, request.temp_response)
    return {"success": True}


@app.get("/api/sessions/{session_id}/document-info")
async def document_info(session_id: int):
    """HTML summary of the staged snapshot for the documentInfo step"""
    session = get_session(session_id)
    return {"html": render_staged_document_html(session.temp_json)}


@app.post("/api/sessions/{session_id}/quotation", response_model=QuotationResponse)
async def session_quotation(session_id: int):
    """Generate a quotation from this session's staged snapshot"""
    session = get_session(session_id)
    result = await generate_quotation(
        session.form_responses,
        session.temp_json.get("documentContent"),
        settings.quotation_prompt,
    )
    return QuotationResponse.model_validate(result)


@app.post("/api/sessions/{session_id}/submit", response_model=SessionState)
async def submit(session_id: int):
    """Mark the session complete once its current step validates"""
    session = get_session(session_id)
    if not session.validate_current_step():
        raise HTTPException(status_code=400, detail="Please complete the current step")

    session.is_submitting = True
    try:
        form_store.update_temp_response(session_id, session.form_responses)
        session.is_form_complete = True
    finally:
        session.is_submitting = False

    logger.info("✓ Session %s submitted with %d responses", session_id, len(session.form_responses))
    return session_state(session)


@app.post("/api/generate-quotation", response_model=QuotationResponse)
async def quotation(request: QuotationRequest):
    """Generate a quotation from explicit form responses and staged document data"""
    result = await generate_quotation(
        request.form_responses,
        request.document_data.get("documentContent"),
        request.content_prompt or settings.quotation_prompt,
    )
    return QuotationResponse.model_validate(result)


@app.get("/debug/{session_id}")
async def debug_session(session_id: int):
    """Debug endpoint to see current session state"""
    session = get_session(session_id)
    return {
        "session_id": session_id,
        "form_id": session.form_id,
        "current_step": session.current_step,
        "total_steps": session.total_steps,
        "form_responses": session.form_responses,
        "temp_json": session.temp_json,
        "temp_response": form_store.get_temp_response(session_id),
        "step_validity": [session.is_step_valid(i) for i in range(len(session.steps))],
        "has_document_uploaded": session.has_document_uploaded(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
