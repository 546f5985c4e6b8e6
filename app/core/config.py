import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

_SUPABASE_URL = os.getenv('SUPABASE_URL')
_SUPABASE_KEY = os.getenv('SUPABASE_KEY')

_OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
_OPENAI_TIMEOUT_SECONDS = float(os.getenv('OPENAI_TIMEOUT_SECONDS', '60'))
_OPENAI_MAX_RETRIES = int(os.getenv('OPENAI_MAX_RETRIES', '2'))

_VECTOR_STORE_EXPIRATION_DAYS = int(os.getenv('VECTOR_STORE_EXPIRATION_DAYS', '30'))
# The provider rejects file batches larger than 100
_VECTOR_STORE_BATCH_SIZE = min(int(os.getenv('VECTOR_STORE_BATCH_SIZE', '100')), 100)
_VECTOR_STORE_POLL_INTERVAL_MS = int(os.getenv('VECTOR_STORE_POLL_INTERVAL_MS', '1000'))

_attach_timeout = os.getenv('VECTOR_STORE_ATTACH_TIMEOUT_SECONDS')
_VECTOR_STORE_ATTACH_TIMEOUT_SECONDS = float(_attach_timeout) if _attach_timeout else None


class Config:
    """Central configuration for the knowledge sync service."""

    SUPABASE_URL = _SUPABASE_URL
    SUPABASE_KEY = _SUPABASE_KEY

    OPENAI_API_KEY = _OPENAI_API_KEY
    OPENAI_TIMEOUT_SECONDS = _OPENAI_TIMEOUT_SECONDS
    OPENAI_MAX_RETRIES = _OPENAI_MAX_RETRIES

    VECTOR_STORE_EXPIRATION_DAYS = _VECTOR_STORE_EXPIRATION_DAYS
    VECTOR_STORE_BATCH_SIZE = _VECTOR_STORE_BATCH_SIZE
    VECTOR_STORE_POLL_INTERVAL_MS = _VECTOR_STORE_POLL_INTERVAL_MS
    VECTOR_STORE_ATTACH_TIMEOUT_SECONDS = _VECTOR_STORE_ATTACH_TIMEOUT_SECONDS

    SERVICE_NAME = os.getenv('SERVICE_NAME', 'linkai-knowledge-sync')


settings = Config()
