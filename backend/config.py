# backend/config.py
"""
Configuration module for the form runtime service
Allows flexible model and upload settings without code changes
"""

import os
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


TRANSLATION_QUOTATION_PROMPT = """FOR TRANSLATION

Item\tUnit\tTypical Unit Price (€)
Standard certified translation\tper page\t65-80 €
Certification stamp (sworn seal)\tper document\t15 €
Express service (48 h)\tsurcharge\t+30 % of base translation fee (≈ 20 € on one page)
Tracked domestic shipping\tflat\t5 €

// If Express Service option is chosen then put the +30% surcharge
// Add domestic shipping surcharge to all
// Total displayed should be in a range and a sum.
// Total will be multiplied based on number of pages
// Add 19% VAT"""


class Settings(BaseSettings):
    """Application settings with environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # OpenAI Configuration
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.3
    openai_max_tokens: int = 4096

    # Server Configuration
    port: int = 8000
    debug: bool = False
    cors_origins: List[str] = ["*"]

    # Document Configuration
    max_file_size_mb: int = 50
    allowed_file_types: List[str] = [".docx", ".pdf", ".txt"]
    upload_dir: str = os.path.join("/tmp", "form_uploads")

    # Quotation Configuration
    quotation_prompt: str = TRANSLATION_QUOTATION_PROMPT


# Initialize global settings
settings = Settings()
