"""
Gemini service for wardrobe item recognition and the styling assistant.
Calls the generateContent REST endpoint and parses the JSON the model returns.
"""
import base64
import binascii
import io
import ipaddress
import json
import logging
import re
import socket
import warnings
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup
from django.conf import settings
from PIL import Image, UnidentifiedImageError

from .models import WardrobeItem

logger = logging.getLogger(__name__)

MAX_PAGE_TEXT_CHARS = 20000
PAGE_FETCH_TIMEOUT = 15
MAX_PAGE_BYTES = 2 * 1024 * 1024
MAX_REDIRECTS = 3
DATA_URL_PREFIX = re.compile(r'^data:image/[\w.+-]+;base64,')
JSON_BLOCK = re.compile(r'\{[\s\S]*\}')

SCRAPE_PROMPT = """以下は商品ページのURLと本文テキストです。商品情報を抽出してください。
URL: {url}

本文:
{page_text}

以下の形式でJSONのみを返してください:
{{
  "name": "商品名",
  "brand": "ブランド名",
  "price": "価格（数字のみ）",
  "currency": "通貨コード（JPY, USD等）",
  "size": "サイズ",
  "color": "色",
  "description": "商品説明",
  "image_url": "商品画像URL"
}}
"""

TAG_PROMPT = """この画像はアパレル商品のタグです。以下の情報を抽出してください:

- ブランド名
- サイズ
- 素材・材質
- 洗濯表示
- 製造国
- カテゴリー（{categories}のいずれか）

以下の形式でJSONのみを返してください:
{{
  "brand": "ブランド名",
  "size": "サイズ",
  "color": "色",
  "materials": "素材（例: 綿 100%）",
  "care_instructions": "洗濯表示",
  "category": "カテゴリー"
}}
"""

ANALYZE_PROMPT = """この画像の商品をワードローブに登録します。写っている商品を分析してください。
カテゴリーは{categories}のいずれかにしてください。

以下の形式でJSONのみを返してください:
{{
  "name": "商品名（例: ネイビー ウールジャケット）",
  "brand": "ブランド名（分からなければ空文字）",
  "color": "色",
  "category": "カテゴリー",
  "size": "サイズ（分からなければ空文字）",
  "description": "特徴の説明"
}}
"""

CHAT_SYSTEM_PROMPT = """あなたはファッションのスタイリストです。ユーザーのワードローブと体型情報を踏まえて、
具体的で実用的なコーディネートの提案を日本語で簡潔に行ってください。

ユーザー情報:
{profile}

ワードローブ（最大50点）:
{wardrobe}
"""


class GeminiError(Exception):
    """Raised when the Gemini API call fails or returns nothing usable"""


class GeminiNotConfigured(GeminiError):
    """Raised when no API key is configured"""


class InvalidImageError(ValueError):
    """Raised when the uploaded payload is not a decodable image"""


class BlockedUrlError(ValueError):
    """Raised when a product URL points at a host the server must not fetch"""


def is_configured():
    return bool(settings.GEMINI_API_KEY)


def decode_image(image_base64):
    """
    Decode a base64 (or data URL) image and return ``(raw_base64, mime_type)``.

    Pillow identifies the format so the MIME type sent to Gemini matches the
    bytes rather than whatever the client claimed.
    """
    if not image_base64 or not isinstance(image_base64, str):
        raise InvalidImageError('imageBase64 is required')

    raw = DATA_URL_PREFIX.sub('', image_base64.strip())
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError('imageBase64 is not valid base64') from e

    try:
        with warnings.catch_warnings():
            warnings.simplefilter('error', Image.DecompressionBombWarning)
            with Image.open(io.BytesIO(data)) as image:
                image.verify()
                image_format = image.format
    except (Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
        raise InvalidImageError('imageBase64 is too large') from e
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidImageError('imageBase64 is not a supported image') from e

    mime_type = Image.MIME.get(image_format, 'image/jpeg')
    return raw, mime_type


def extract_json(text):
    """Parse the first ``{...}`` block of a model reply"""
    match = JSON_BLOCK.search(text or '')
    if not match:
        raise GeminiError('Model reply did not contain JSON')
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise GeminiError(f'Model reply contained invalid JSON: {e}') from e


def generate_content(contents, system_instruction=None):
    """POST to generateContent and return the first candidate's text"""
    if not is_configured():
        raise GeminiNotConfigured('GEMINI_API_KEY is not configured')

    url = f"{settings.GEMINI_API_BASE}/models/{settings.GEMINI_MODEL}:generateContent"
    payload = {'contents': contents}
    if system_instruction:
        payload['systemInstruction'] = {'parts': [{'text': system_instruction}]}

    try:
        response = requests.post(
            url,
            params={'key': settings.GEMINI_API_KEY},
            json=payload,
            timeout=settings.GEMINI_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        logger.error(f"Gemini request failed: {str(e)}", exc_info=True)
        raise GeminiError('Gemini API request failed') from e
    except ValueError as e:
        logger.error(f"Gemini returned a non-JSON body: {str(e)}")
        raise GeminiError('Gemini API returned an invalid response') from e

    try:
        return data['candidates'][0]['content']['parts'][0]['text']
    except (KeyError, IndexError, TypeError) as e:
        logger.warning(f"Gemini response had no text candidate: {data}")
        raise GeminiError('Gemini API returned no content') from e


def category_labels():
    return '、'.join(value for value, _ in WardrobeItem.CATEGORY_CHOICES)


def _meta_content(soup, key, attr='property'):
    tag = soup.find('meta', attrs={attr: key})
    return tag['content'].strip() if tag and tag.get('content') else ''


def check_public_url(url):
    """Reject non-http(s) URLs and hosts that resolve to non-public addresses"""
    parsed = urlparse(url)
    if parsed.scheme not in ('http', 'https') or not parsed.hostname:
        raise BlockedUrlError('Only http and https URLs can be fetched')
    try:
        port = parsed.port or (443 if parsed.scheme == 'https' else 80)
        addresses = socket.getaddrinfo(parsed.hostname, port, proto=socket.IPPROTO_TCP)
    except (ValueError, socket.gaierror) as e:
        raise BlockedUrlError(f'Could not resolve {parsed.hostname}') from e

    for address_info in addresses:
        address = ipaddress.ip_address(address_info[4][0].split('%')[0])
        if not address.is_global or address.is_multicast:
            logger.warning(f"Refusing to fetch {url}: {parsed.hostname} resolves to {address}")
            raise BlockedUrlError(f'{parsed.hostname} is not a public host')


def _read_limited(response):
    chunks = []
    size = 0
    for chunk in response.iter_content(chunk_size=8192):
        chunks.append(chunk)
        size += len(chunk)
        if size >= MAX_PAGE_BYTES:
            break
    return b''.join(chunks)[:MAX_PAGE_BYTES]


def fetch_page_text(url):
    """
    Download a product page; returns ``(visible text, og:image url)``.

    Redirects are followed by hand so every hop goes through
    ``check_public_url``, and at most ``MAX_PAGE_BYTES`` of the body is read.
    """
    current = url
    for _ in range(MAX_REDIRECTS + 1):
        check_public_url(current)
        try:
            with requests.get(
                current,
                timeout=PAGE_FETCH_TIMEOUT,
                headers={'User-Agent': 'Mozilla/5.0 (compatible; WardrobeBot/1.0)'},
                stream=True,
                allow_redirects=False,
            ) as response:
                if response.is_redirect:
                    current = urljoin(current, response.headers['Location'])
                    continue
                response.raise_for_status()
                body = _read_limited(response)
                break
        except requests.exceptions.RequestException as e:
            logger.warning(f"Could not fetch {current}: {str(e)}")
            raise GeminiError(f'Could not fetch {current}') from e
    else:
        raise GeminiError(f'Too many redirects fetching {url}')

    soup = BeautifulSoup(body, 'html.parser')
    og_image = _meta_content(soup, 'og:image')
    for tag in soup(['script', 'style', 'noscript']):
        tag.decompose()
    text = soup.get_text(' ', strip=True)[:MAX_PAGE_TEXT_CHARS]
    return text, (urljoin(current, og_image) if og_image else None)


def scrape_product_url(url):
    page_text, og_image = fetch_page_text(url)
    text = generate_content([{'parts': [{'text': SCRAPE_PROMPT.format(url=url, page_text=page_text)}]}])
    result = extract_json(text)
    if og_image and not result.get('image_url'):
        result['image_url'] = og_image
    return result


def _image_request(prompt, image_base64):
    raw, mime_type = decode_image(image_base64)
    text = generate_content([{
        'parts': [
            {'text': prompt},
            {'inline_data': {'mime_type': mime_type, 'data': raw}},
        ]
    }])
    return extract_json(text)


def extract_tag_info(image_base64):
    return _image_request(TAG_PROMPT.format(categories=category_labels()), image_base64)


def analyze_product_image(image_base64):
    return _image_request(ANALYZE_PROMPT.format(categories=category_labels()), image_base64)


def describe_profile(user):
    fields = [
        ('性別', user.gender),
        ('身長', f"{user.height_cm}cm" if user.height_cm else None),
        ('体重', f"{user.weight_kg}kg" if user.weight_kg else None),
        ('年齢', user.age),
        ('骨格タイプ', user.body_type),
        ('体型の特徴', '、'.join(user.body_features or []) or None),
        ('補足', user.body_features_note),
    ]
    lines = [f"- {label}: {value}" for label, value in fields if value]
    return '\n'.join(lines) or '未登録'


def describe_wardrobe(items):
    lines = []
    for item in items[:50]:
        details = ' / '.join(part for part in (item.brand, item.category, item.color, item.size) if part)
        lines.append(f"- {item.name}" + (f" ({details})" if details else ''))
    return '\n'.join(lines) or 'アイテムなし'


def chat(user, message, history, items):
    """Continue a stylist conversation; ``history`` is [{role, content}, ...]"""
    contents = []
    for turn in history or []:
        content = (turn or {}).get('content')
        if not content:
            continue
        role = 'model' if turn.get('role') == 'assistant' else 'user'
        contents.append({'role': role, 'parts': [{'text': content}]})
    contents.append({'role': 'user', 'parts': [{'text': message}]})

    system_instruction = CHAT_SYSTEM_PROMPT.format(
        profile=describe_profile(user),
        wardrobe=describe_wardrobe(items),
    )
    return generate_content(contents, system_instruction=system_instruction).strip()
