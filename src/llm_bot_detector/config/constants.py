"""
Constants for LLM bot detection and event collection.
"""

# =============================================================================
# Event Collection
# =============================================================================

DEFAULT_COLLECTOR_URL = "https://askdoppler.com/api/traffic"

# Short enough that background dispatch cannot pile up indefinitely
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0

# Events waiting for the dispatch worker; newer events are dropped beyond this
DEFAULT_MAX_PENDING_EVENTS = 1000

DEFAULT_FILTERS_DIR = "data/filters"

# Sent to hosting layer when a request was classified
NO_CACHE_HEADER_VALUE = "no-cache, must-revalidate, max-age=0"

# =============================================================================
# Request Parsing
# =============================================================================

FORWARDED_FOR_HEADER = "x-forwarded-for"
USER_AGENT_HEADER = "user-agent"
UTM_SOURCE_PARAM = "utm_source"

# Chrome scroll-to-text fragment directive
TEXT_FRAGMENT_MARKER = "#:~:text="

# =============================================================================
# Known Agent Families
# =============================================================================

# Order is load-bearing: the first listed family wins when several match.
# "urls" point to the published IP-prefix documents for each family.
AGENT_CATALOG = {
    "openai": {
        "urls": [
            "https://openai.com/searchbot.json",
            "https://openai.com/chatgpt-user.json",
            "https://openai.com/gptbot.json",
        ],
        "user_agents": [
            "OAI-SearchBot/1.0",
            "ChatGPT-User/1.0",
            "+https://openai.com/bot",
            "+https://openai.com/searchbot",
            "GPTBot/1.1",
            "+https://openai.com/gptbot",
        ],
        "utm": ["chatgpt.com", "openai.com"],
    },
    "google": {
        "urls": [
            "https://developers.google.com/static/search/apis/ipranges/googlebot.json",
            "https://developers.google.com/static/search/apis/ipranges/special-crawlers.json",
            "https://developers.google.com/static/search/apis/ipranges/user-triggered-fetchers.json",
            "https://developers.google.com/static/search/apis/ipranges/user-triggered-fetchers-google.json",
        ],
        "user_agents": ["Google-CloudVertexBot", "Googlebot", "Google-Extended"],
        "utm": ["google.com"],
    },
    "bing": {
        "urls": ["https://www.bing.com/toolbox/bingbot.json"],
        "user_agents": ["bingbot/2.0", "+http://www.bing.com/bingbot"],
        "utm": ["bing.com"],
    },
    "perplexity": {
        "urls": [
            "https://www.perplexity.com/perplexitybot.json",
            "https://www.perplexity.com/perplexity-user.json",
        ],
        "user_agents": [
            "PerplexityBot/1.0",
            "+https://perplexity.ai/perplexitybot",
            "Perplexity-User/1.0",
            "+https://perplexity.ai/perplexity-user",
        ],
        "utm": ["perplexity.ai", "perplexity.com"],
    },
}

KNOWN_AGENT_NAMES = list(AGENT_CATALOG.keys())
