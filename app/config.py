import os
from dotenv import load_dotenv

load_dotenv()

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")

# "supabase" persists across restarts; "memory" is process-local (dev / tests)
HISTORY_BACKEND = os.getenv(
    "HISTORY_BACKEND",
    "supabase" if SUPABASE_URL and SUPABASE_KEY else "memory",
).lower()
WEATHER_HISTORY_TABLE = os.getenv("WEATHER_HISTORY_TABLE", "weather_history")
PREDICTION_HISTORY_TABLE = os.getenv("PREDICTION_HISTORY_TABLE", "prediction_history")

# History bounds: CAPACITY is what the store retains, LIMIT is what a read returns
WEATHER_HISTORY_CAPACITY = int(os.getenv("WEATHER_HISTORY_CAPACITY", "5"))
WEATHER_HISTORY_LIMIT = int(os.getenv("WEATHER_HISTORY_LIMIT", "5"))
PREDICTION_HISTORY_CAPACITY = int(os.getenv("PREDICTION_HISTORY_CAPACITY", "100"))
PREDICTION_HISTORY_LIMIT = int(os.getenv("PREDICTION_HISTORY_LIMIT", "100"))

# External APIs
WEATHER_API_KEY = os.getenv("WEATHER_API_KEY", os.getenv("API_KEY", ""))
WEATHER_API_URL = os.getenv("WEATHER_API_URL", "https://api.openweathermap.org/data/2.5/weather")
WEATHER_UNITS = os.getenv("WEATHER_UNITS", "metric")
PREDICTION_API_URL = os.getenv("PREDICTION_API_URL", "")
DEFAULT_MODEL_VERSION = os.getenv("DEFAULT_MODEL_VERSION", "rf-v2")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))

# Uploads
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif", "image/bmp"}
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "10"))
