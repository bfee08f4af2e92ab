# Generator package

# Exposes the code generator and the completion-text extractors.

from .generator import CodeGenerator, completion_text, load_profiles
from .extract import extract_app_payload, extract_html_payload, extract_json_object
from .types import GenerationProfile, Message

__all__ = [
    "CodeGenerator",
    "completion_text",
    "load_profiles",
    "extract_app_payload",
    "extract_html_payload",
    "extract_json_object",
    "GenerationProfile",
    "Message",
]
