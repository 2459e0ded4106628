import os
from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL", os.getenv("NEXT_PUBLIC_SUPABASE_URL"))
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", os.getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY"))
SUPABASE_TIMEOUT = float(os.getenv("SUPABASE_TIMEOUT", "30"))
# Optional override of the realtime websocket URL derived from SUPABASE_URL
SUPABASE_REALTIME_URL = os.getenv("SUPABASE_REALTIME_URL")

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)
REDIS_DB = int(os.getenv("REDIS_DB", "0"))

# "redis" or "memory"
STATE_PERSISTENCE = os.getenv("STATE_PERSISTENCE", "memory").lower()
STATE_KEY_PREFIX = os.getenv("STATE_KEY_PREFIX", "sellexa:state")

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

PRODUCT_IMAGES_BUCKET = "product-images"
AVATARS_BUCKET = "avatars"
