"""Common literal values used across moegirl_pages.

These constants keep endpoint defaults and user-facing sentinels centralized
so the client, formatters, CLI and tests import the same values without
drifting. Intended for internal use within the moegirl_pages package.

Examples
--------
>>> from moegirl_pages import _constants
>>> _constants.PAGE_URL_TEMPLATE.format(pageid=42)
'https://zh.moegirl.org.cn/index.php?curid=42'
>>> _constants.NO_TOC_SENTINEL
'No table of contents'
"""

DEFAULT_API_ENDPOINT = "https://zh.moegirl.org.cn/api.php"
PAGE_URL_TEMPLATE = "https://zh.moegirl.org.cn/index.php?curid={pageid}"
DEFAULT_USER_AGENT = "moegirl-pages/0.1"
DEFAULT_TIMEOUT = 15.0
DEFAULT_CACHE_TTL = 30 * 60.0
DEFAULT_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 0.5

TOC_HEADER = "Table of contents"
NO_TOC_SENTINEL = "No table of contents"
