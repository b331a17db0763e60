# backend/form_store.py
"""
In-memory store for persisted forms and form-filling sessions

Stands in for the persistence layer: forms are saved with their prompt
history and icon mode, and every form-filling session gets a per-form
sequence number plus a temporary response snapshot.
"""

import copy
import logging
from itertools import count
from typing import Any, Dict, List, Optional

from models import FormConfig, FormRecord, IconMode

logger = logging.getLogger(__name__)


class FormNotFoundError(KeyError):
    """Raised when a form id has no persisted record"""


class FormStore:
    """Last-write-wins record of forms keyed by integer id"""

    def __init__(self) -> None:
        self._forms: Dict[int, FormRecord] = {}
        self._form_ids = count(1)
        self._session_ids = count(1)
        self._session_counts: Dict[int, int] = {}
        self._temp_responses: Dict[int, Dict[str, Any]] = {}

    def save_form(
        self,
        config: FormConfig,
        prompt_history: Optional[List[str]] = None,
        icon_mode: IconMode = "lucide",
    ) -> FormRecord:
        form_id = next(self._form_ids)
        record = FormRecord(
            id=form_id,
            config=config.model_copy(deep=True),
            prompt_history=list(prompt_history or []),
            icon_mode=icon_mode,
        )
        self._forms[form_id] = record
        logger.info("✓ Saved form %s with %d steps", form_id, len(config.steps))
        return record.model_copy(deep=True)

    def get_form(self, form_id: int) -> FormRecord:
        """
        Fetch the last persisted version of a form

        Raises:
            FormNotFoundError: no form with this id
        """
        record = self._forms.get(form_id)
        if record is None:
            raise FormNotFoundError(form_id)
        # Callers get their own copy so edits never reach the stored version
        return record.model_copy(deep=True)

    def update_form(
        self,
        form_id: int,
        config: FormConfig,
        prompt_history: Optional[List[str]] = None,
        icon_mode: Optional[IconMode] = None,
    ) -> FormRecord:
        current = self.get_form(form_id)
        record = FormRecord(
            id=form_id,
            config=config.model_copy(deep=True),
            prompt_history=list(prompt_history) if prompt_history is not None else current.prompt_history,
            icon_mode=icon_mode or current.icon_mode,
        )
        self._forms[form_id] = record
        logger.info("✓ Updated form %s", form_id)
        return record.model_copy(deep=True)

    def set_icon_mode(self, form_id: int, icon_mode: IconMode) -> FormRecord:
        record = self.get_form(form_id)
        record.icon_mode = icon_mode
        self._forms[form_id] = record
        return record.model_copy(deep=True)

    def create_session(self, form_id: int) -> Dict[str, int]:
        """Allocate a new form-filling session; sessionNo counts sessions of this form"""
        self.get_form(form_id)
        session_id = next(self._session_ids)
        session_no = self._session_counts.get(form_id, 0) + 1
        self._session_counts[form_id] = session_no
        self._temp_responses[session_id] = {}
        logger.info("[Session] NEW session created: ID=%s, No=%s for form %s", session_id, session_no, form_id)
        return {"sessionId": session_id, "sessionNo": session_no}

    def update_temp_response(self, session_id: int, responses: Dict[str, Any]) -> None:
        self._temp_responses[session_id] = copy.deepcopy(responses)
        logger.debug("[Session] Updated temp response for session %s", session_id)

    def get_temp_response(self, session_id: int) -> Dict[str, Any]:
        return copy.deepcopy(self._temp_responses.get(session_id, {}))
