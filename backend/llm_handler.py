# backend/llm_handler.py
"""
Quotation generation for the documentInfo step
- Build a prompt from the staged snapshot and document text
- Ask the chat model for a short price estimate
- Fall back to a static quotation whenever the model is unavailable
"""

import html
import json
import logging
import re
import time
from typing import Any, Dict, Optional
from langchain_openai import ChatOpenAI
from langchain_core.messages import HumanMessage, SystemMessage
from config import settings

logger = logging.getLogger(__name__)

DEBUG = settings.debug


def debug_log(message: str, level: str = "INFO"):
    """Log LLM traffic with a tagged prefix"""
    levels = {
        "INFO": ("ℹ️ ", logging.INFO),
        "SUCCESS": ("✅ ", logging.INFO),
        "WARNING": ("⚠️ ", logging.WARNING),
        "ERROR": ("❌ ", logging.ERROR),
        "DEBUG": ("🔍 ", logging.DEBUG),
        "LLM_CALL": ("🤖 ", logging.DEBUG),
        "LLM_RESPONSE": ("💬 ", logging.DEBUG),
    }
    prefix, log_level = levels.get(level, ("→ ", logging.INFO))
    if log_level < logging.WARNING and not DEBUG:
        return
    logger.log(log_level, f"{prefix} [LLM_HANDLER] {message}")


QUOTATION_SYSTEM_PROMPT = """You are a translation price estimation agent.

Your task is to:
1. Analyze the provided form responses and document content
2. Use the pricing structure supplied with the request
3. Calculate the estimated price range for the user's request, following all rules in the pricing structure.
4. If Express Service is selected, add the 30% surcharge. Always add the domestic shipping fee. Multiply by number of pages if provided. Add 19% VAT.

CRITICAL RULES:
- Return ONLY 1-2 lines of content, citing the estimated price range (e.g., "Estimated total: 120-150 € (including VAT and surcharges)").
- Do NOT generate a full business quotation, no headers, no lengthy text, no official formatting.
- Be concise and clear.
- Output only the price estimate, nothing else."""


_llm: Optional[ChatOpenAI] = None


def _build_llm(model_name: str) -> ChatOpenAI:
    return ChatOpenAI(
        model=model_name,
        temperature=settings.openai_temperature,
        max_tokens=settings.openai_max_tokens,
        api_key=settings.openai_api_key,
        top_p=0.8,
    )


def get_llm() -> Optional[ChatOpenAI]:
    """Chat model, created on first use; None when no API key is configured"""
    global _llm
    if not settings.openai_api_key:
        return None
    if _llm is None:
        _llm = _build_llm(settings.openai_model)
        debug_log(f"ChatOpenAI initialized with model={settings.openai_model}", "SUCCESS")
    return _llm


def set_model(model_name: str) -> Optional[ChatOpenAI]:
    """Change the LLM model at runtime"""
    global _llm
    debug_log(f"Switching model to: {model_name}", "INFO")
    settings.openai_model = model_name
    _llm = None
    return get_llm()


def build_quotation_prompt(
    form_responses: Dict[str, Any],
    document_content: Optional[str],
    content_prompt: Optional[str]
) -> str:
    """Prompt combining the document, the answers and the pricing template"""
    if content_prompt:
        template_section = f"""Quotation Template/Pricing Structure:
{content_prompt}

Please use this template as the basis for your quotation. Follow the pricing structure, calculate totals according to the specified rules."""
    else:
        template_section = "Generate a professional quotation based on the provided information."

    return f"""Based on the following information, estimate the price:

Document Information:
{json.dumps(document_content or "", ensure_ascii=False, indent=2)}

Form Responses:
{json.dumps(form_responses, ensure_ascii=False, indent=2, default=str)}

{template_section}"""


def clean_quotation_html(quotation_text: str) -> str:
    """Strip markdown fences and make sure the result is wrapped in HTML"""
    cleaned = re.sub(r"```html\s*", "", quotation_text)
    cleaned = re.sub(r"```\s*", "", cleaned).strip()

    if "<div" not in cleaned and "<html" not in cleaned:
        cleaned = f'<div class="quotation-content">{cleaned}</div>'
    return cleaned


def generate_fallback_quotation(content_prompt: Optional[str]) -> str:
    """Static quotation shown when the model cannot be reached"""
    requirements = html.escape(content_prompt or "Your request has been received.")
    return f"""<div class="quotation-content">
  <div style="text-align: center; margin-bottom: 30px; padding: 20px; border-bottom: 2px solid #0E565B;">
    <h1 style="color: #0E565B; margin: 0; font-size: 28px;">PROFESSIONAL QUOTATION</h1>
    <p style="color: #6a6a6a; margin: 5px 0 0 0;">Quote #{int(time.time() * 1000)}</p>
  </div>
  <div style="margin-bottom: 25px;">
    <h3 style="color: #374151;">Project Requirements</h3>
    <p style="color: #6B7280; line-height: 1.6; white-space: pre-wrap;">{requirements}</p>
  </div>
  <div style="margin-bottom: 25px;">
    <h3 style="color: #374151;">Next Steps</h3>
    <ol style="color: #6B7280; line-height: 1.6;">
      <li>Review of submitted information and documents</li>
      <li>Detailed project analysis and planning</li>
      <li>Comprehensive quotation preparation</li>
      <li>Direct contact for discussion and clarification</li>
    </ol>
  </div>
  <div style="background: #0E565B; color: white; padding: 20px; border-radius: 6px; text-align: center;">
    <p style="margin: 0; font-weight: 600;">Thank you for your interest in our services!</p>
    <p style="margin: 5px 0 0 0; opacity: 0.9;">We will contact you soon with a detailed quotation.</p>
  </div>
</div>"""


async def generate_quotation(
    form_responses: Dict[str, Any],
    document_content: Optional[str],
    content_prompt: Optional[str]
) -> Dict[str, Any]:
    """
    Generate a short price estimate from form answers and document text

    Returns:
        {"success": bool, "quotationHtml": str, "error": Optional[str]}
        A fallback quotation is returned instead of raising.
    """
    debug_log("GENERATE_QUOTATION CALLED", "LLM_CALL")

    llm = get_llm()
    if llm is None:
        debug_log("OPENAI_API_KEY not available for quotation generation", "WARNING")
        return {
            "success": False,
            "error": "AI service unavailable",
            "quotationHtml": generate_fallback_quotation(content_prompt),
        }

    prompt = build_quotation_prompt(form_responses, document_content, content_prompt)

    try:
        response = await llm.ainvoke([
            SystemMessage(content=QUOTATION_SYSTEM_PROMPT),
            HumanMessage(content=prompt)
        ])
    except Exception as e:
        debug_log(f"Error generating quotation: {str(e)}", "ERROR")
        return {
            "success": False,
            "error": "AI service error",
            "quotationHtml": generate_fallback_quotation(content_prompt),
        }

    quotation_text = response.content if isinstance(response.content, str) else ""
    debug_log(f"LLM response: {len(quotation_text)} chars", "LLM_RESPONSE")

    if not quotation_text.strip():
        debug_log("Empty response from quotation model", "ERROR")
        return {
            "success": False,
            "error": "Empty response from AI",
            "quotationHtml": generate_fallback_quotation(content_prompt),
        }

    debug_log("✓ Quotation generated", "SUCCESS")
    return {
        "success": True,
        "error": None,
        "quotationHtml": clean_quotation_html(quotation_text),
    }
