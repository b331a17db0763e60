# backend/document_handler.py
"""
Document processing for the documentUpload step
Extracts plain text with python-docx / pypdf and renders the staged snapshot
"""

import html
import logging
import os
import re
from typing import Any, Dict, Optional
from docx import Document
from pypdf import PdfReader

logger = logging.getLogger(__name__)


def extract_docx_text(docx_path: str) -> str:
    """
    Extract plain text from .docx file

    Args:
        docx_path: Path to .docx file

    Returns:
        Plain text from all paragraphs and table cells
    """
    doc = Document(docx_path)
    text_parts = []

    # Extract from paragraphs
    for paragraph in doc.paragraphs:
        if paragraph.text.strip():
            text_parts.append(paragraph.text)

    # Extract from tables
    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                if cell.text.strip():
                    text_parts.append(cell.text)

    return "\n".join(text_parts)


def extract_pdf_text(pdf_path: str) -> str:
    """Extract text page by page; pages without a text layer are skipped"""
    reader = PdfReader(pdf_path)
    text_parts = []
    for page in reader.pages:
        page_text = page.extract_text() or ""
        if page_text.strip():
            text_parts.append(page_text.strip())
    return "\n".join(text_parts)


def extract_document_text(file_path: str) -> str:
    """
    Extract plain text from an uploaded document

    Args:
        file_path: Path to a .docx, .pdf or .txt file

    Returns:
        Extracted text

    Raises:
        ValueError: unsupported file extension
    """
    extension = os.path.splitext(file_path)[1].lower()

    if extension == ".docx":
        text = extract_docx_text(file_path)
    elif extension == ".pdf":
        text = extract_pdf_text(file_path)
    elif extension == ".txt":
        with open(file_path, "rb") as f:
            text = f.read().decode("utf-8", errors="replace")
    else:
        raise ValueError(f"Unsupported document type: {extension or 'unknown'}")

    logger.info("✓ Extracted %d chars from %s", len(text), os.path.basename(file_path))
    return text


def build_upload_response(
    filename: str,
    document_url: str,
    extracted_text: Optional[str]
) -> Dict[str, Any]:
    """The response value recorded for a documentUpload step"""
    return {
        "documentUrl": document_url,
        "extractedText": extracted_text or "",
        "fileName": filename,
    }


def _display_name(document_url: str) -> str:
    # Stored uploads are prefixed with "<timestamp>_"
    file_name = document_url.rstrip("/").split("/")[-1]
    return re.sub(r"^\d+_", "", file_name)


def render_staged_document_html(temp_json: Dict[str, Any]) -> str:
    """
    Render the staged snapshot as an HTML summary for the documentInfo step

    Upload objects show their file name, documentContent is shown in a
    scrollable block, everything else as plain text.
    """
    parts = []

    for key, value in temp_json.items():
        parts.append('<div style="margin-bottom: 16px;">')
        parts.append(
            '<h3 style="color: #374151; font-weight: 600; margin-bottom: 6px; font-size: 14px;">'
            f"{html.escape(str(key))}</h3>"
        )

        if isinstance(value, dict) and "documentUrl" in value:
            file_name = _display_name(str(value["documentUrl"]))
            parts.append(
                '<p style="color: #6B7280; line-height: 1.5; margin: 0; font-size: 13px;">'
                f"📄 {html.escape(file_name)}</p>"
            )
        elif key == "documentContent":
            parts.append(
                '<div style="background: #f9fafb; border: 1px solid #e5e7eb; border-radius: 6px; '
                'padding: 10px; max-height: 150px; overflow-y: auto;">'
            )
            parts.append(
                '<p style="color: #374151; line-height: 1.5; margin: 0; font-size: 12px; white-space: pre-wrap;">'
                f"{html.escape(str(value))}</p>"
            )
            parts.append("</div>")
        else:
            parts.append(
                '<p style="color: #6B7280; line-height: 1.5; margin: 0; font-size: 13px;">'
                f"{html.escape(_format_value(value))}</p>"
            )

        parts.append("</div>")

    if not parts:
        return '<p style="color: #6B7280; font-style: italic;">No form data available yet.</p>'
    return "".join(parts)


def _format_value(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    if isinstance(value, dict):
        return ", ".join(f"{k}: {v}" for k, v in value.items())
    return str(value)
