"""Configuration settings for the partner order extractor."""

import os
from pathlib import Path

# Model configuration
MODEL_CONFIG: dict[str, str | float | int] = {
    "extraction_model": "gpt-4o-mini",
    "temperature": 0.1,
    "max_tokens": 1000,
    "timeout": 30,  # seconds, timeout counts as "capability unavailable"
}

# Fields every extraction record carries, in wire (camelCase) form
RECORD_FIELDS = [
    "orderNumber",
    "customerName",
    "productCode",
    "productName",
    "material",
    "unitWeight",
    "quantity",
    "orderDate",
    "deliveryDate",
    "notes",
]

# Minimum signal set used for quality scoring
ESSENTIAL_FIELDS = [
    "order_number",
    "customer_name",
    "product_code",
    "product_name",
    "material",
]

# Quality tiers, checked top-down
QUALITY_LEVELS: list[tuple[int, str]] = [
    (80, "excellent"),
    (60, "good"),
    (40, "fair"),
]

# Quality levels that trigger the generative second pass
ESCALATION_LEVELS = frozenset({"poor", "fair"})

# Learning history limits
LEARNING_MAX_ENTRIES = 100
LEARNING_RETAIN_ENTRIES = 50
LEARNING_RECENT_DAYS = 7
LEARNING_DEFAULT_CONFIDENCE = 50

# Prompt construction
PROMPT_EXAMPLE_COUNT = 5
PROMPT_MAX_CHARS = 2000
PROMPT_EXAMPLE_SNIPPET_CHARS = 200

# Pattern inference context windows
INFERENCE_CONTEXT_CHARS = 20
ANALYSIS_CONTEXT_CHARS = 30

# Simulated extraction scoring
SIMULATED_BASE_CONFIDENCE = 50
SIMULATED_FIELD_BONUS = 10

# Persistence keys
LEARNING_HISTORY_KEY = "ai_learning_history"
CUSTOM_FORMATS_KEY = "custom_pdf_formats"

DEFAULT_STORAGE_PATH = Path(
    os.getenv("ORDER_EXTRACTOR_DB", str(Path.home() / ".order_extractor" / "store.db"))
)

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = "INFO"
