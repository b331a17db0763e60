# backend/form_session.py
"""
Form-filling session state

FormSession owns the loaded FormConfig, the cursor, the response map and
the staged document snapshot (tempJson) that feeds quotation generation.
Operations never raise on bad input; they degrade to permissive defaults.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, get_args

from form_store import FormStore
from models import FormConfig, FormStep, IconMode, StepType
from step_validator import has_document_uploaded, is_step_valid

logger = logging.getLogger(__name__)

KNOWN_STEP_TYPES = frozenset(get_args(StepType))


@dataclass
class AdvanceResult:
    """Outcome of a gated step transition"""
    ok: bool
    current_step: int
    error: Optional[str] = None


class StagedDocument:
    """
    Collects responses up to the first documentUpload step

    The checkpoint is resolved once per config: every step at or before the
    first documentUpload step is collectible. Updating the checkpoint step
    itself also copies the extracted document text and URL.
    """

    def __init__(self, steps: List[FormStep]) -> None:
        self.checkpoint: Optional[int] = None
        for index, step in enumerate(steps):
            if step.type == "documentUpload":
                self.checkpoint = index
                break

        # First occurrence wins when titles repeat
        self._positions: Dict[str, int] = {}
        for index, step in enumerate(steps):
            self._positions.setdefault(step.title, index)

    @property
    def enabled(self) -> bool:
        return self.checkpoint is not None

    def merge(self, snapshot: Dict[str, Any], step_title: str, value: Any) -> Dict[str, Any]:
        """Return the snapshot after recording one response; unchanged when not collectible"""
        if not self.enabled:
            return snapshot

        index = self._positions.get(step_title)
        if index is None or index > self.checkpoint:
            return snapshot

        merged = dict(snapshot)
        merged[step_title] = value

        if index == self.checkpoint and isinstance(value, dict):
            document_text = value.get("extractedText") or value.get("documentContent")
            if document_text:
                merged["documentContent"] = document_text
            if value.get("documentUrl"):
                merged["documentUrl"] = value["documentUrl"]
            logger.debug(
                "[FORM-SESSION] Document upload staged: keys=%s, documentContent=%d chars",
                list(merged.keys()),
                len(merged.get("documentContent") or ""),
            )

        return merged


class FormSession:
    """In-memory runtime of one form being filled in"""

    def __init__(self, form_store: Optional[FormStore] = None) -> None:
        self.form_store = form_store
        self.form_config: Optional[FormConfig] = None
        self.form_id: Optional[int] = None
        self.prompt_history: List[str] = []
        self.form_responses: Dict[str, Any] = {}
        self.temp_json: Dict[str, Any] = {}
        self.current_step = 1
        self.is_submitting = False
        self.is_form_complete = False
        self.icon_mode: IconMode = "lucide"
        self.session_id: Optional[int] = None
        self.session_no: Optional[int] = None
        self._staged = StagedDocument([])

    # ------------------------------------------------------------------
    # Config lifecycle
    # ------------------------------------------------------------------

    @property
    def steps(self) -> List[FormStep]:
        return self.form_config.steps if self.form_config else []

    @property
    def total_steps(self) -> int:
        return len(self.steps) or 1

    def set_form_config(self, config: FormConfig) -> None:
        """Load a new config and start the session over from step 1"""
        self.form_config = config
        self._staged = StagedDocument(config.steps)
        self.current_step = 1
        self.form_responses = {}
        self.temp_json = {}
        self.is_form_complete = False
        self.prompt_history = []
        logger.info("Loaded form config with %d steps", len(config.steps))
        for step in config.steps:
            if step.type not in KNOWN_STEP_TYPES:
                logger.warning("⚠️  Unknown step type '%s' for step '%s', treated as always valid", step.type, step.title)

    def set_form_id(self, form_id: int) -> None:
        self.form_id = form_id

    def reset_responses(self) -> None:
        """Clear answers and rewind, keeping the config and form id"""
        self.form_responses = {}
        self.temp_json = {}
        self.current_step = 1
        self.is_form_complete = False

    def reset_form(self) -> None:
        """Clear answers and the config itself"""
        self.reset_responses()
        self.form_config = None
        self._staged = StagedDocument([])

    def reset_server_config(self) -> None:
        """
        Replace in-memory state with the last persisted version of this form

        Failures are logged and leave the current state untouched.
        """
        if self.form_id is None or self.form_store is None:
            return

        try:
            record = self.form_store.get_form(self.form_id)
        except Exception as e:
            logger.error("resetServerConfig failed for form %s: %s", self.form_id, e)
            return

        self.set_form_config(record.config)
        self.form_id = record.id
        self.prompt_history = list(record.prompt_history)
        self.icon_mode = record.icon_mode

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def update_response(self, step_title: str, value: Any) -> None:
        """
        Record the answer for a step

        Titles that match no step are stored anyway; validators never look
        at them. Steps at or before the first documentUpload step are also
        copied into the staged snapshot.
        """
        self.form_responses = {**self.form_responses, step_title: value}
        self.temp_json = self._staged.merge(self.temp_json, step_title, value)

        if self.form_store is not None and self.session_id is not None:
            self.form_store.update_temp_response(self.session_id, self.form_responses)

    def has_document_uploaded(self) -> bool:
        return has_document_uploaded(self.steps, self.form_responses)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next_step(self) -> None:
        """Move forward without consulting validation"""
        if self.current_step >= self.total_steps:
            return

        steps = self.steps
        if self.current_step < len(steps):
            upcoming = steps[self.current_step]
            if upcoming.type == "documentInfo" and not self.has_document_uploaded():
                # Nothing to quote without a document
                if self.current_step + 2 > self.total_steps:
                    # documentInfo is the last step: stay here, the form is ready to submit
                    logger.debug("No step after documentInfo '%s' - cursor stays", upcoming.title)
                    return
                logger.debug("Skipping documentInfo step '%s' - no document uploaded", upcoming.title)
                self.current_step += 2
                return

        self.current_step += 1

    def prev_step(self) -> None:
        if self.current_step > 1:
            self.current_step -= 1

    def advance(self) -> AdvanceResult:
        """Move forward only when the current step validates"""
        if self.form_config is None:
            return AdvanceResult(ok=False, current_step=self.current_step, error="No form loaded")
        if not self.validate_current_step():
            title = self.steps[self.current_step - 1].title
            return AdvanceResult(ok=False, current_step=self.current_step, error=f"Step '{title}' is not complete")
        if self.current_step >= self.total_steps:
            return AdvanceResult(ok=False, current_step=self.current_step, error="Already on the last step")

        previous = self.current_step
        self.next_step()
        if self.current_step == previous:
            return AdvanceResult(ok=False, current_step=self.current_step, error="No later step to move to")
        return AdvanceResult(ok=True, current_step=self.current_step)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def is_step_valid(self, step_index: int) -> bool:
        """Validate a step by 0-based index"""
        if self.form_config is None:
            return False
        return is_step_valid(self.steps, self.form_responses, step_index)

    def validate_current_step(self) -> bool:
        return self.is_step_valid(self.current_step - 1)

    # ------------------------------------------------------------------
    # Theme
    # ------------------------------------------------------------------

    def update_theme_color(self, color_type: str, color_value: str) -> None:
        if self.form_config is None:
            return
        theme = self.form_config.theme
        colors = {**theme.colors, color_type: color_value}
        self._replace_theme(theme.model_copy(update={"colors": colors}))

    def update_font_family(self, font_family: str) -> None:
        if self.form_config is None:
            return
        font = {"family": font_family, "size": "medium", "weight": "400"}
        self._replace_theme(self.form_config.theme.model_copy(update={"font": font}))

    def _replace_theme(self, theme) -> None:
        # New config object, same session: theme edits do not rewind the user
        self.form_config = self.form_config.model_copy(update={"theme": theme})

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "sessionNo": self.session_no,
            "formId": self.form_id,
            "formConfig": self.form_config,
            "promptHistory": list(self.prompt_history),
            "formResponses": copy.deepcopy(self.form_responses),
            "tempJson": copy.deepcopy(self.temp_json),
            "currentStep": self.current_step,
            "totalSteps": self.total_steps,
            "isSubmitting": self.is_submitting,
            "isFormComplete": self.is_form_complete,
            "iconMode": self.icon_mode,
            "isCurrentStepValid": self.validate_current_step(),
            "hasDocumentUploaded": self.has_document_uploaded(),
        }
