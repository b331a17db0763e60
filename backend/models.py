# backend/models.py
"""
Pydantic models for form configs and API payloads
Step variants keep their own fields as extras; only the shared ones are typed
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional


StepType = Literal[
    "tiles",
    "multiSelect",
    "slider",
    "followup",
    "textbox",
    "location",
    "contact",
    "documentUpload",
    "documentInfo",
    "dropdown",
]

IconMode = Literal["lucide", "emoji", "none"]
ColorChannel = Literal["primary", "secondary", "accent"]


class StepValidation(BaseModel):
    """Validation block attached to textbox, dropdown, location and documentUpload steps"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    required: Optional[bool] = Field(default=None, description="Explicit False makes the step optional")
    min_length: Optional[int] = Field(default=None, alias="minLength", description="Informational only, never enforced")


class FormStep(BaseModel):
    """One screen of a multi-step form, tagged by type"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    # Plain str so configs with step types this service does not know still load
    type: str = Field(..., description="Step type, e.g. tiles, multiSelect, documentUpload")
    title: str = Field(..., description="Display title, also the response key")
    subtitle: Optional[str] = Field(default=None)
    validation: Optional[StepValidation] = Field(default=None)


class Theme(BaseModel):
    """Form theme: colour map and optional font"""
    model_config = ConfigDict(extra="allow")

    colors: Dict[str, Any] = Field(default_factory=dict)
    font: Optional[Dict[str, str]] = Field(default=None)


class FormConfig(BaseModel):
    """JSON document describing ordered steps and theming"""
    model_config = ConfigDict(extra="allow")

    theme: Theme = Field(default_factory=Theme)
    steps: List[FormStep] = Field(default_factory=list)
    ui: Optional[Dict[str, Any]] = Field(default=None)
    submission: Optional[Dict[str, Any]] = Field(default=None)


class FormRecord(BaseModel):
    """A persisted form as returned by GET /api/forms/{id}"""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    config: FormConfig
    prompt_history: List[str] = Field(default_factory=list, alias="promptHistory")
    icon_mode: IconMode = Field(default="lucide", alias="iconMode")


class SaveFormRequest(BaseModel):
    """Request for saving or replacing a form"""
    model_config = ConfigDict(populate_by_name=True)

    config: FormConfig
    prompt_history: List[str] = Field(default_factory=list, alias="promptHistory")
    icon_mode: IconMode = Field(default="lucide", alias="iconMode")


class IconModeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    icon_mode: IconMode = Field(..., alias="iconMode")


class ResponseUpdate(BaseModel):
    """Request for recording a step response"""
    model_config = ConfigDict(populate_by_name=True)

    step_title: str = Field(..., alias="stepTitle", description="Title of the step being answered")
    value: Any = Field(default=None, description="Response value, shape depends on step type")


class ToggleRequest(BaseModel):
    """Request for toggling one option of a multiSelect step"""
    model_config = ConfigDict(populate_by_name=True)

    step_title: str = Field(..., alias="stepTitle")
    option_id: str = Field(..., alias="optionId")


class ThemeUpdate(BaseModel):
    """Request for changing a theme colour and/or the font family"""
    model_config = ConfigDict(populate_by_name=True)

    color_type: Optional[ColorChannel] = Field(default=None, alias="colorType")
    color_value: Optional[str] = Field(default=None, alias="colorValue")
    font_family: Optional[str] = Field(default=None, alias="fontFamily")


class TempResponseUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    temp_response: Dict[str, Any] = Field(default_factory=dict, alias="tempResponse")


class QuotationRequest(BaseModel):
    """Request for quotation generation from explicit data"""
    model_config = ConfigDict(populate_by_name=True)

    form_responses: Dict[str, Any] = Field(default_factory=dict, alias="formResponses")
    document_data: Dict[str, Any] = Field(default_factory=dict, alias="documentData")
    content_prompt: Optional[str] = Field(default=None, alias="contentPrompt")


class QuotationResponse(BaseModel):
    """Response from quotation generation"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    quotation_html: str = Field(..., alias="quotationHtml")
    error: Optional[str] = Field(default=None)


class SessionState(BaseModel):
    """Current state of a form-filling session"""
    model_config = ConfigDict(populate_by_name=True)

    session_id: int = Field(..., alias="sessionId")
    session_no: Optional[int] = Field(default=None, alias="sessionNo")
    form_id: Optional[int] = Field(default=None, alias="formId")
    form_config: Optional[FormConfig] = Field(default=None, alias="formConfig")
    prompt_history: List[str] = Field(default_factory=list, alias="promptHistory")
    form_responses: Dict[str, Any] = Field(default_factory=dict, alias="formResponses")
    temp_json: Dict[str, Any] = Field(default_factory=dict, alias="tempJson")
    current_step: int = Field(..., alias="currentStep")
    total_steps: int = Field(..., alias="totalSteps")
    is_submitting: bool = Field(default=False, alias="isSubmitting")
    is_form_complete: bool = Field(default=False, alias="isFormComplete")
    icon_mode: IconMode = Field(default="lucide", alias="iconMode")
    is_current_step_valid: bool = Field(..., alias="isCurrentStepValid")
    has_document_uploaded: bool = Field(default=False, alias="hasDocumentUploaded")


class AdvanceResponse(BaseModel):
    """Response from the gated advance endpoint"""
    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    current_step: int = Field(..., alias="currentStep")
    error: Optional[str] = Field(default=None)


class StepValidityResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    step_index: int = Field(..., alias="stepIndex")
    valid: bool
