"""
Configuration constants for the product catalog
"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Store selection
USE_DB = os.getenv("USE_DB", "false").strip().lower() == "true"
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
PRODUCTS_TABLE = os.getenv("PRODUCTS_TABLE", "products")
PRODUCTS_JSON = Path(os.getenv("PRODUCTS_JSON", Path(__file__).parent / "data" / "products.json"))
DB_BATCH_SIZE = 1000  # rows per Supabase range request

# LLM
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemma-3-27b-it")
AI_TEMPERATURE = 0.1
SUMMARY_MAX_TOKENS = 600
COMPARE_MAX_TOKENS = 800

# HTTP
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()
]

# Pagination
DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100

# Sorting
SORT_OPTIONS = ("alphabetical", "price-asc", "price-desc", "rating-asc", "rating-desc")
DEFAULT_SORT = "alphabetical"

# Values that mean "CPU unknown" in source data (compared lowercase)
CPU_PLACEHOLDERS = {"—", "–", "-", "unknown", "n/a", ""}

# AI output limits
SUMMARY_ITEM_MAX_LEN = 120
SUMMARY_TLDR_MAX_LEN = 280
COMPARE_ITEM_MAX_LEN = 200
COMPARE_TLDR_MAX_LEN = 400
MAX_PROS_CONS = 5
