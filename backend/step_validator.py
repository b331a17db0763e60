# backend/step_validator.py
"""
Per-step-type validation rules

Every validator is a pure predicate over a step definition and the
response map. Nothing here raises: unknown step types are valid.
"""

import re
from typing import Any, Callable, Dict, List, Optional

from models import FormStep


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Keys on a documentUpload response that mean a file actually arrived
UPLOAD_CONTENT_KEYS = ("file", "extractedText", "documentContent", "documentUrl")


def _is_optional(step: FormStep) -> bool:
    """Only an explicit `required: false` makes a step optional"""
    return step.validation is not None and step.validation.required is False


def _validate_tiles(step: FormStep, response: Any) -> bool:
    return bool(response)


def _validate_multi_select(step: FormStep, response: Any) -> bool:
    return isinstance(response, list) and len(response) > 0


def _validate_dropdown(step: FormStep, response: Any) -> bool:
    if _is_optional(step):
        return True
    return bool(response)


def _validate_always(step: FormStep, response: Any) -> bool:
    return True


def _validate_followup(step: FormStep, response: Any) -> bool:
    # Step components write {option, followup}; older payloads use {option, value}
    if not isinstance(response, dict) or not response:
        return False
    return "option" in response and ("followup" in response or "value" in response)


def _validate_textbox(step: FormStep, response: Any) -> bool:
    # minLength is shown as a hint only
    if _is_optional(step):
        return True
    return isinstance(response, str) and len(response.strip()) > 0


def _validate_location(step: FormStep, response: Any) -> bool:
    if _is_optional(step):
        return True
    return isinstance(response, dict) and "postalCode" in response


def _validate_contact(step: FormStep, response: Any) -> bool:
    """
    Contact details are optional as a whole

    Once a name is given an email becomes mandatory, and any email
    given must look like one.
    """
    if not response:
        return True
    if not isinstance(response, dict):
        return False

    first_name = response.get("firstName")
    email = response.get("email")

    if not first_name and not email:
        return True
    if first_name and not email:
        return False
    # fullmatch: `$` alone would accept a trailing newline
    return bool(EMAIL_PATTERN.fullmatch(str(email)))


def _validate_document_upload(step: FormStep, response: Any) -> bool:
    return bool(response)


VALIDATORS: Dict[str, Callable[[FormStep, Any], bool]] = {
    "tiles": _validate_tiles,
    "multiSelect": _validate_multi_select,
    "dropdown": _validate_dropdown,
    "slider": _validate_always,
    "followup": _validate_followup,
    "textbox": _validate_textbox,
    "location": _validate_location,
    "contact": _validate_contact,
    "documentUpload": _validate_document_upload,
    "documentInfo": _validate_always,
}


def validate_step(step: FormStep, responses: Dict[str, Any]) -> bool:
    """
    Check whether the recorded response lets the user leave this step

    Args:
        step: Step definition from the loaded FormConfig
        responses: Response map keyed by step title

    Returns:
        True when the step is acceptable to advance from
    """
    validator = VALIDATORS.get(step.type, _validate_always)
    return validator(step, responses.get(step.title))


def is_step_valid(steps: List[FormStep], responses: Dict[str, Any], step_index: int) -> bool:
    """Validate the step at a 0-based index; out-of-range indexes are invalid"""
    if step_index < 0 or step_index >= len(steps):
        return False
    return validate_step(steps[step_index], responses)


def toggle_option(selected: Optional[List[str]], option_id: str) -> List[str]:
    """Add or remove one option id from a multiSelect selection, keeping order"""
    current = list(selected) if isinstance(selected, list) else []
    if option_id in current:
        return [item for item in current if item != option_id]
    return current + [option_id]


def find_document_upload_step(steps: List[FormStep]) -> Optional[FormStep]:
    for step in steps:
        if step.type == "documentUpload":
            return step
    return None


def has_document_uploaded(steps: List[FormStep], responses: Dict[str, Any]) -> bool:
    """True when the documentUpload step holds an actual file, not a placeholder name"""
    upload_step = find_document_upload_step(steps)
    if upload_step is None:
        return False

    response = responses.get(upload_step.title)
    if not isinstance(response, dict):
        return False
    return any(response.get(key) for key in UPLOAD_CONTENT_KEYS)
