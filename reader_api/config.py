from dotenv import load_dotenv
import os

load_dotenv()

PORT = int(os.getenv("PORT", "3001"))
READER_HOST = os.getenv("READER_HOST", "0.0.0.0")

# primary + AMP fetch
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "15"))
USER_AGENT = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
)

# accept/fallback boundary, chars of stripped plain text
MIN_TEXT_LENGTH = int(os.getenv("MIN_TEXT_LENGTH", "300"))
EXTRACTOR = os.getenv("EXTRACTOR", "heuristic")

# response cache (7 min TTL, sweep every 10 min)
CACHE_TTL = float(os.getenv("CACHE_TTL", str(7 * 60)))
CACHE_SWEEP_INTERVAL = float(os.getenv("CACHE_SWEEP_INTERVAL", str(10 * 60)))
CACHE_MAX_AGE = int(os.getenv("CACHE_MAX_AGE", "300"))

# page-to-text rendering service used as fallback
RENDER_PROXY_URL = os.getenv("RENDER_PROXY_URL", "https://r.jina.ai/")
RENDER_PROXY_API_KEY = os.getenv("RENDER_PROXY_API_KEY", "")
RENDER_PROXY_TIMEOUT = float(os.getenv("RENDER_PROXY_TIMEOUT", "30"))
RENDER_PROXY_ATTEMPTS = int(os.getenv("RENDER_PROXY_ATTEMPTS", "2"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
