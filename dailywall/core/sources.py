# dailywall/core/sources.py
"""
Metadata API endpoints and the response shapes they can return.

The built-in provider is Bing's HPImageArchive. A user-configured endpoint
replaces it entirely. Responses are interpreted by an ordered list of
parsers; the first one that yields an image URL wins.
"""
import json
import logging
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

BING_BASE_URL = "https://www.bing.com"
# Common markets: en-US, en-GB, en-CA, en-AU, de-DE, fr-FR, ja-JP, zh-CN
BING_API_URL = "https://www.bing.com/HPImageArchive.aspx?format=js&idx=0&n=1&mkt={region}"


def resolve_endpoint(custom_api: str, region: str = 'en-US') -> str:
    """Returns the custom API URL verbatim if one is set, else the Bing endpoint."""
    if custom_api and custom_api.strip():
        return custom_api.strip()
    return BING_API_URL.format(region=region)


def _load_json_object(body):
    """Decodes a response body into a dict, or returns None."""
    try:
        data = json.loads(body)
    except (ValueError, TypeError) as e:
        logger.debug(f"Response body is not valid JSON: {e}")
        return None
    if not isinstance(data, dict):
        logger.debug(f"Response JSON is a {type(data).__name__}, not an object.")
        return None
    return data


def parse_bing_response(data: dict) -> str | None:
    """
    Bing shape: {"images": [{"url": "/th?id=..."}, ...]}.

    Only the first image is looked at. Its path is appended to the Bing
    origin as-is.
    """
    images = data.get('images')
    if not isinstance(images, list) or not images:
        logger.debug("No 'images' array in response.")
        return None
    first = images[0]
    if not isinstance(first, dict):
        return None
    image_path = first.get('url')
    if not isinstance(image_path, str) or not image_path:
        logger.debug("No 'url' string on the first image.")
        return None
    return BING_BASE_URL + image_path


def parse_custom_response(data: dict) -> str | None:
    """Custom shape: {"imageUrl": "https://..."}, used verbatim."""
    image_url = data.get('imageUrl')
    if not isinstance(image_url, str) or not image_url.strip():
        logger.debug("No 'imageUrl' string in response.")
        return None
    parsed = urlparse(image_url.strip())
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        logger.warning(f"'imageUrl' is not an absolute http(s) URL: {image_url!r}")
        return None
    return image_url.strip()


# Tried in order. Add new provider shapes here.
RESPONSE_PARSERS = [
    ('bing', parse_bing_response),
    ('custom', parse_custom_response),
]


def resolve_image_url(body, parsers=None) -> str | None:
    """
    Runs the response parsers in order over a metadata response body.

    Args:
        body (str | bytes): Raw response body.
        parsers (list): (name, callable) pairs, defaults to RESPONSE_PARSERS.

    Returns:
        str: Absolute image URL from the first parser that applies, or None
             if none of them do.
    """
    data = _load_json_object(body)
    if data is None:
        return None
    for name, parser in (parsers if parsers is not None else RESPONSE_PARSERS):
        image_url = parser(data)
        if image_url:
            logger.info(f"Resolved image URL using '{name}' response shape: {image_url}")
            return image_url
        logger.debug(f"Response shape '{name}' does not apply.")
    return None
