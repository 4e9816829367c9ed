"""Default configuration settings for the assistant core."""

from __future__ import annotations

# --- Language Model Provider ---
DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_MAX_OUTPUT_TOKENS = 4000
ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant for project management and productivity. "
    "Provide clear, actionable advice and help users organize their work effectively."
)
EMPTY_REPLY = "Sorry, I could not generate a response."
PROVIDER_TIMEOUT = 120.0

# --- Transport Strategies ---
DEFAULT_PROXY_URL = "http://localhost:3001"
PROXY_CHAT_PATH = "/api/claude-proxy"
PROXY_HEALTH_PATH = "/health"
PROXY_HEALTH_TIMEOUT = 2.0
MANAGED_FUNCTION_NAME = "claude-chat"

# --- Context Assembly ---
DEFAULT_CONTEXT_TOKENS = 150_000
RECENT_MESSAGE_WINDOW = 100
SUMMARY_INTERVAL = 20
CHARS_PER_TOKEN = 4

# --- Conversations ---
DEFAULT_CONVERSATION_TITLE = "New Chat"
UNTITLED_CONVERSATION = "Untitled Conversation"
FALLBACK_TITLE = "New Conversation"
MAX_TITLE_LENGTH = 50
PREVIEW_WORDS = 10
NO_MESSAGES_PREVIEW = "No messages yet"
ERROR_REPLY = "Sorry, I could not reach the assistant. Please try again."

# --- Cache ---
DEFAULT_CACHE_TTL = 5 * 60.0
MAX_CACHE_ENTRIES = 1000
# Per key-type TTLs in seconds, matched against the key prefix
CACHE_TTLS = {
    "user_profile": 30 * 60.0,
    "user_projects": 5 * 60.0,
    "project_details": 10 * 60.0,
    "project_tasks": 2 * 60.0,
    "chat_conversations": 10 * 60.0,
    "chat_messages": 30 * 60.0,
    "dashboard_stats": 15 * 60.0,
    "search_projects": 2 * 60.0,
    "user_files": 10 * 60.0,
}

# --- Predictive Preloading ---
MAX_COMMON_ROUTES = 20
MAX_FREQUENT_PROJECTS = 10
PRELOAD_FREQUENT_PROJECTS = 5
BACKGROUND_SYNC_INTERVAL = 5 * 60.0
# Assumed working hours for users without a usage trace
DEFAULT_PEAK_HOURS = (9, 10, 11, 14, 15, 16)
