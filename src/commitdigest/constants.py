"""
Constants and configuration values for commitdigest.
"""

# Orchestration defaults
DEFAULT_CHUNK_THRESHOLD = 300
DEFAULT_CHUNK_SIZE = 250
DEFAULT_MAX_ITERATIONS = 10
DEFAULT_MAX_CHUNK_ITERATIONS = 5

# Prompt rendering limits
MAX_FILES_IN_PROMPT = 20
MAX_FILES_PER_RECORD = 50

# Tool configuration
FETCH_DETAILS_TOOL_NAME = "get_commit_details"
MAX_IDS_PER_INVOCATION = 10
MAX_TOOL_TOP_FILES = 10
PATCH_CHANGE_LIMIT = 50  # patches are only shown for files with fewer changed lines

# Detail fetcher pacing
DETAIL_BATCH_SIZE = 5
DETAIL_BATCH_DELAY = 0.5  # seconds

# Commit listing
COMMITS_PER_PAGE = 100
MAX_COMMIT_PAGES = 3

# Remote call defaults
DEFAULT_TIMEOUT = 300.0  # 5 minutes per attempt
DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_RETRY_DELAY = 60.0  # seconds
DEFAULT_TEMPERATURE = 0.3

# Provider endpoints and models
DEFAULT_GEMINI_MODEL = "gemini-2.5-pro"
DEFAULT_NEXOS_ENDPOINT = "https://api.nexos.ai/v1"
DEFAULT_NEXOS_MODEL = "8b77459d-7cc0-4bcd-a671-34648dd4aec6"  # gemini-2.5-pro
DEFAULT_OPENAI_ENDPOINT = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-4.1"

# Project the digests are about
PROJECT_NAME = "Chromium"

# Links rendered into prompts
GITHUB_COMMIT_URL = "https://github.com/chromium/chromium/commit/"
DEFAULT_REPOSITORY = "chromium/chromium"
DEFAULT_BRANCH = "main"

# Environment variable names
ENV_VARS = {
    "GEMINI_API_KEY": "SECRET_GEMINI_API_KEY",
    "NEXOS_API_KEY": "SECRET_NEXOS_TOKEN",
    "OPENAI_API_KEY": "OPENAI_API_KEY",
    "OPENAI_ENDPOINT": "OPENAI_ENDPOINT_URL",
    "MODEL_NAME": "MODEL_NAME",
    "GITHUB_TOKEN": "GITHUB_PERSONAL_ACCESS_TOKEN",
    "MCP_LOG_LEVEL": "MCP_LOG_LEVEL",
    "RUST_LOG": "RUST_LOG",
}

# Commit authors that never carry interesting changes
DEFAULT_IGNORED_BOT_EMAILS: list[str] = [
    "bling-autoroll-builder@chops-service-accounts.iam.gserviceaccount.com",
    "chromeos-ci-prod@chromeos-bot.iam.gserviceaccount.com",
    "chromium-autoroll@skia-public.iam.gserviceaccount.com",
    "chromium-internal-autoroll@skia-corp.google.com.iam.gserviceaccount.com",
    "mdb.chrome-pki-metadata-release-jobs@google.com",
]

# First-line pattern of automated version bump commits
VERSION_BUMP_PATTERN = r"updating\s+(trunk\s+)?version\s+from"

# Commit identifiers are full 40-character SHA-1 hashes
COMMIT_HASH_PATTERN = r"\b[0-9a-f]{40}\b"

DEFAULT_BREAKING_CHANGE_CRITERIA = (
    "API removals, signature changes, behavior changes that require code "
    "updates in downstream projects, removed flags or switches, deprecated "
    "features being removed, and changes to public interfaces."
)

STRICT_BREAKING_CHANGE_CRITERIA = (
    "Only count a change as breaking if a project embedding or forking "
    "Chromium must change its own code or build configuration to keep "
    "compiling or behaving the same. Internal refactors, test-only changes, "
    "new optional APIs and bug fixes are NOT breaking."
)

# Retryable error markers found in provider error messages
RETRYABLE_ERROR_MARKERS = (
    "rate limit",
    "quota",
    "429",
    "overloaded",
    "resource_exhausted",
    "unavailable",
)

# System directives
SYSTEM_PROMPTS = {
    "DAILY": (
        "You are an expert software engineer and technical writer creating "
        "daily summaries of Chromium project changes."
    ),
    "CHUNK": (
        "You are an expert software engineer and technical writer analyzing "
        "Chromium commits."
    ),
    "BREAKING": (
        "You are a meticulous release engineer who identifies breaking "
        "changes in Chromium commits for downstream embedders."
    ),
    "JSON": (
        "You are an expert software engineer and technical writer. "
        "Generate valid JSON only."
    ),
    "WEEKLY": (
        "You are an expert technical writer creating weekly summaries of "
        "Chromium development. Respond with valid JSON only."
    ),
}

FALLBACK_SUMMARY_REQUEST = (
    "Please provide a summary of your analysis so far based on the "
    "information you gathered. Do not request any more tool calls."
)
