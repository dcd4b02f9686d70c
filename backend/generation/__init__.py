"""Problem generation pipeline: prompt, Gemini call, extraction, normalization."""
from .extractor import ExtractionError, extract_problems_from_text
from .gemini import MODEL, GeminiResult, call_gemini
from .normalizer import coerce_numeric, normalize_problem, normalize_problems
from .prompts import build_prompt
from .schema import ProblemType, Sentinel

__all__ = [
    "ExtractionError",
    "extract_problems_from_text",
    "MODEL",
    "GeminiResult",
    "call_gemini",
    "coerce_numeric",
    "normalize_problem",
    "normalize_problems",
    "build_prompt",
    "ProblemType",
    "Sentinel",
]
