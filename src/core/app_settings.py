"""
Application Settings Module
Manages persistent link preview settings using QSettings.
"""

from PyQt6.QtCore import QSettings

# --- Settings Constants ---

# Settings organization and application name
SETTINGS_ORGANIZATION = "LinkPreview"
SETTINGS_APPLICATION = "LinkPreview"

# Settings keys
USER_AGENT_KEY = "Fetch/UserAgent"  # User-Agent header sent with preview fetches
CORS_PROXY_KEY = "Fetch/CorsProxy"  # Prefix prepended to fetched URLs
FETCH_TIMEOUT_KEY = "Fetch/TimeoutSeconds"  # Timeout for preview fetch requests
ENABLE_ANIMATION_KEY = "UI/EnableAnimation"  # Expand the card when data arrives
ANIMATION_DURATION_KEY = "UI/AnimationDurationMs"  # Reveal + notify delay

# Default values
DEFAULT_USER_AGENT = None  # None sends the fetcher's built-in agent
DEFAULT_CORS_PROXY = None  # No proxy by default
DEFAULT_FETCH_TIMEOUT_SECONDS = 10
DEFAULT_ENABLE_ANIMATION = False
DEFAULT_ANIMATION_DURATION_MS = 300

# --- Fetch Constants ---
FALLBACK_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
FETCH_MAX_HTML_BYTES = 512 * 1024  # Metadata lives in <head>, no need for more
FETCH_MAX_IMAGE_BYTES = 8 * 1024 * 1024  # Upper bound for size probing
MAX_IMAGE_CANDIDATES = 5  # Stop probing images after this many failures

# --- Layout Constants ---
MINIMIZED_IMAGE_SIZE = 48  # Square image next to the text in minimized cards
MINIMIZED_IMAGE_RADIUS = 12
MINIMIZED_TEXT_RIGHT_SPACING = 4
FULL_CARD_HORIZONTAL_INSET = 32  # Image width is the widget width minus this
DEFAULT_CARD_PADDING = (24, 0, 24, 16)  # left, top, right, bottom
DEFAULT_CARD_MARGIN = (0, 0, 0, 0)
DEFAULT_CARD_COLOR = "rgba(255, 255, 255, 179)"  # white70
DEFAULT_TITLE_STYLE = "font-weight: bold;"
HEADER_BOTTOM_SPACING = 6
DESCRIPTION_TOP_SPACING = 8
TITLE_MAX_LINES = 2
DESCRIPTION_MAX_LINES = 3
TEXT_MAX_LINES = 100


def _get_settings() -> QSettings:
    """Get a QSettings instance with the application's organization and name."""
    return QSettings(SETTINGS_ORGANIZATION, SETTINGS_APPLICATION)


def _optional_str(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


# --- Fetch Settings ---
def get_user_agent() -> str | None:
    """Gets the configured User-Agent for preview fetches."""
    settings = _get_settings()
    return _optional_str(settings.value(USER_AGENT_KEY, DEFAULT_USER_AGENT))


def set_user_agent(user_agent: str | None):
    """Sets the User-Agent for preview fetches, None restores the default."""
    settings = _get_settings()
    if _optional_str(user_agent) is None:
        settings.remove(USER_AGENT_KEY)
    else:
        settings.setValue(USER_AGENT_KEY, user_agent.strip())


def get_cors_proxy() -> str | None:
    """Gets the configured CORS proxy prefix."""
    settings = _get_settings()
    return _optional_str(settings.value(CORS_PROXY_KEY, DEFAULT_CORS_PROXY))


def set_cors_proxy(proxy: str | None):
    """Sets the CORS proxy prefix, None disables it."""
    settings = _get_settings()
    if _optional_str(proxy) is None:
        settings.remove(CORS_PROXY_KEY)
    else:
        settings.setValue(CORS_PROXY_KEY, proxy.strip())


def get_fetch_timeout_seconds() -> int:
    """Gets the timeout applied to each preview request."""
    settings = _get_settings()
    return settings.value(FETCH_TIMEOUT_KEY, DEFAULT_FETCH_TIMEOUT_SECONDS, type=int)


def set_fetch_timeout_seconds(timeout: int):
    """Sets the preview request timeout. Must be positive."""
    if timeout <= 0:
        raise ValueError(f"Fetch timeout must be positive, got {timeout}")
    settings = _get_settings()
    settings.setValue(FETCH_TIMEOUT_KEY, timeout)


# --- Animation Settings ---
def get_enable_animation() -> bool:
    """Gets whether the reveal animation is enabled."""
    settings = _get_settings()
    return settings.value(ENABLE_ANIMATION_KEY, DEFAULT_ENABLE_ANIMATION, type=bool)


def set_enable_animation(enabled: bool):
    """Sets whether the reveal animation is enabled."""
    settings = _get_settings()
    settings.setValue(ENABLE_ANIMATION_KEY, enabled)


def get_animation_duration_ms() -> int:
    """Gets the reveal animation duration in milliseconds."""
    settings = _get_settings()
    return settings.value(
        ANIMATION_DURATION_KEY, DEFAULT_ANIMATION_DURATION_MS, type=int
    )


def set_animation_duration_ms(duration_ms: int):
    """Sets the reveal animation duration. Zero disables the delay."""
    if duration_ms < 0:
        raise ValueError(f"Animation duration cannot be negative, got {duration_ms}")
    settings = _get_settings()
    settings.setValue(ANIMATION_DURATION_KEY, duration_ms)
