# app/services/url_metadata.py
"""
Extração de metadados de URLs (título, descrição, imagem, preço, moeda,
nome do site e tipo) para pré-visualização de links e produtos.

Cada campo é obtido por uma lista de extratores em ordem de prioridade: o
primeiro valor não vazio vence. URLs do YouTube usam a API oEmbed.
As funções públicas deste módulo nunca levantam exceção: qualquer falha
resulta em um registro mínimo derivado do domínio da URL.
"""

# ========================
# --- Importações ---
# ========================
import logging
import re
from typing import Callable, Optional, Sequence
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup
from pydantic import ValidationError

# --- Módulos da Aplicação ---
from app.core.config import settings
from app.models.metadata import UrlMetadata

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Constantes ---
# ========================
REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "DNT": "1",
}

DEFAULT_TYPE = "website"
DEFAULT_CURRENCY = "USD"
CURRENCY_SYMBOLS = {"$": "USD", "€": "EUR", "£": "GBP", "¥": "JPY", "₹": "INR"}
_CURRENCY_SYMBOL_RE = re.compile(r"[$€£¥₹]")
_PRICE_CLEANUP_RE = re.compile(r"[^0-9.,]")

YOUTUBE_OEMBED_URL = "https://www.youtube.com/oembed"
YOUTUBE_THUMBNAIL_URL = "https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"
_YOUTUBE_ID_RE = re.compile(r"^.*((youtu.be/)|(v/)|(/u/\w/)|(embed/)|(watch\?))\??v?=?([^#&?]*).*")
YOUTUBE_ID_LENGTH = 11

# ========================
# --- Extratores ---
# ========================
Extractor = Callable[[BeautifulSoup], Optional[str]]

def _meta(attribute: str, key: str) -> Extractor:
    """Conteúdo de `<meta {attribute}="{key}" content="...">`."""
    selector = f'meta[{attribute}="{key}"]'
    def extract(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.select_one(selector)
        return tag.get("content") if tag else None
    return extract

def _text(selector: str) -> Extractor:
    """Texto do primeiro elemento que casa com o seletor CSS."""
    def extract(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.select_one(selector)
        return tag.get_text() if tag else None
    return extract

def _attr(selector: str, attribute: str) -> Extractor:
    """Atributo do primeiro elemento que casa com o seletor CSS."""
    def extract(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.select_one(selector)
        return tag.get(attribute) if tag else None
    return extract

TITLE_EXTRACTORS: Sequence[Extractor] = (
    _meta("property", "og:title"),
    _meta("name", "twitter:title"),
    _meta("property", "title"),
    _text("title"),
    _text("h1"),
)

DESCRIPTION_EXTRACTORS: Sequence[Extractor] = (
    _meta("property", "og:description"),
    _meta("name", "twitter:description"),
    _meta("name", "description"),
    _meta("property", "description"),
)

IMAGE_EXTRACTORS: Sequence[Extractor] = (
    _meta("property", "og:image"),
    _meta("name", "twitter:image"),
    _meta("property", "twitter:image"),
    _attr('link[rel="image_src"]', "href"),
    _attr("img", "src"),
)

PRICE_EXTRACTORS: Sequence[Extractor] = (
    _meta("property", "product:price:amount"),
    _meta("property", "og:price:amount"),
    _text(".price"),
    _text('[class*="price"]'),
    _attr("[data-price]", "data-price"),
)

CURRENCY_EXTRACTORS: Sequence[Extractor] = (
    _meta("property", "product:price:currency"),
    _meta("property", "og:price:currency"),
)

PRICE_TEXT_EXTRACTORS: Sequence[Extractor] = (
    _text(".price"),
    _text('[class*="price"]'),
)

SITE_NAME_EXTRACTORS: Sequence[Extractor] = (
    _meta("property", "og:site_name"),
    _meta("name", "application-name"),
)

PRODUCT_MARKERS = ('meta[property="product:price:amount"]', ".price", '[class*="price"]', "[data-price]")
VIDEO_MARKERS = ('meta[property="og:video"]', 'meta[name="twitter:player"]')

def first_non_empty(soup: BeautifulSoup, extractors: Sequence[Extractor]) -> str:
    """Avalia os extratores em ordem e retorna o primeiro valor não vazio (ou "")."""
    for extract in extractors:
        value = extract(soup)
        if value:
            return value
    return ""

# ========================
# --- Extração por Campo ---
# ========================
def extract_title(soup: BeautifulSoup) -> str:
    return first_non_empty(soup, TITLE_EXTRACTORS).strip()

def extract_description(soup: BeautifulSoup) -> str:
    return first_non_empty(soup, DESCRIPTION_EXTRACTORS).strip()

def extract_image(soup: BeautifulSoup, page_url: str) -> str:
    """
    Imagem de destaque. Valores que não começam com "http" são resolvidos
    contra a origem da página; se a origem não puder ser determinada, "".
    """
    image = first_non_empty(soup, IMAGE_EXTRACTORS)
    if image and not image.startswith("http"):
        parsed = urlparse(page_url)
        if not parsed.scheme or not parsed.netloc:
            return ""
        try:
            image = urljoin(f"{parsed.scheme}://{parsed.netloc}", image)
        except ValueError:
            return ""
    return image

def extract_price(soup: BeautifulSoup) -> str:
    """Preço com apenas dígitos, ponto e vírgula."""
    price = first_non_empty(soup, PRICE_EXTRACTORS)
    return _PRICE_CLEANUP_RE.sub("", price).strip()

def extract_currency(soup: BeautifulSoup) -> str:
    """
    Moeda das metatags de produto; na falta delas, o primeiro símbolo
    monetário encontrado no texto do preço. Padrão: USD.
    """
    currency = first_non_empty(soup, CURRENCY_EXTRACTORS)
    if not currency:
        price_text = first_non_empty(soup, PRICE_TEXT_EXTRACTORS)
        match = _CURRENCY_SYMBOL_RE.search(price_text)
        if match:
            currency = CURRENCY_SYMBOLS.get(match.group(0), DEFAULT_CURRENCY)
    return currency or DEFAULT_CURRENCY

def extract_site_name(soup: BeautifulSoup) -> str:
    return first_non_empty(soup, SITE_NAME_EXTRACTORS).strip()

def extract_type(soup: BeautifulSoup) -> str:
    """
    `og:type`, sobrescrito por "product" se houver preço na página e por
    "video" se houver player de vídeo (o último a se aplicar vence).
    """
    page_type = first_non_empty(soup, (_meta("property", "og:type"),))
    if any(soup.select_one(selector) is not None for selector in PRODUCT_MARKERS):
        page_type = "product"
    if any(soup.select_one(selector) is not None for selector in VIDEO_MARKERS):
        page_type = "video"
    return page_type or DEFAULT_TYPE

def parse_html_metadata(html: str, url: str) -> UrlMetadata:
    """Aplica todos os extratores sobre um documento HTML já baixado."""
    soup = BeautifulSoup(html, "html.parser")
    return UrlMetadata(
        url=url,
        title=extract_title(soup),
        description=extract_description(soup),
        image=extract_image(soup, url),
        price=extract_price(soup),
        currency=extract_currency(soup),
        site_name=extract_site_name(soup),
        type=extract_type(soup),
    )

# ========================
# --- Fallback ---
# ========================
def domain_name(url: str) -> str:
    """Host da URL sem o prefixo "www."; "Website" se não houver host."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        host = None
    if not host:
        return "Website"
    return host[4:] if host.startswith("www.") else host

def fallback_metadata(url: str) -> UrlMetadata:
    """Registro mínimo devolvido quando a busca ou o parse falham."""
    domain = domain_name(url)
    return UrlMetadata(url=url, title=domain, description=f"Visit {domain}", type=DEFAULT_TYPE)

# ========================
# --- Busca Genérica ---
# ========================
async def fetch_url_metadata(url: str) -> UrlMetadata:
    """
    Baixa a página (um único GET, sem retries) e extrai seus metadados.

    Returns:
        Os metadados extraídos, ou o registro de fallback em caso de qualquer
        erro (rede, timeout, status HTTP de erro, parse).
    """
    logger.info(f"Buscando metadados da URL: {url}")
    try:
        async with httpx.AsyncClient(
            headers=REQUEST_HEADERS,
            timeout=settings.METADATA_FETCH_TIMEOUT_SECONDS,
            follow_redirects=True,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
        metadata = parse_html_metadata(response.text, url)
        logger.debug(f"Metadados extraídos de {url}: {metadata.model_dump()}")
        return metadata

    except httpx.TimeoutException:
        logger.warning(f"Timeout ao buscar metadados de {url}")
    except httpx.HTTPStatusError as exc:
        logger.warning(f"Status {exc.response.status_code} ao buscar metadados de {url}")
    except httpx.RequestError as exc:
        logger.warning(f"Erro na requisição ao buscar metadados de {url}: {exc}")
    except Exception as e:
        logger.exception(f"Erro inesperado ao extrair metadados de {url}: {e}")
    return fallback_metadata(url)

# ========================
# --- YouTube ---
# ========================
def extract_youtube_video_id(url: str) -> Optional[str]:
    """ID de 11 caracteres do vídeo, ou None se a URL não tiver um."""
    match = _YOUTUBE_ID_RE.match(url)
    if match and len(match.group(7)) == YOUTUBE_ID_LENGTH:
        return match.group(7)
    return None

def is_youtube_url(url: str) -> bool:
    return "youtube.com" in url or "youtu.be" in url

async def fetch_youtube_metadata(url: str) -> UrlMetadata:
    """
    Metadados de um vídeo do YouTube via oEmbed.

    Se o ID do vídeo não puder ser extraído ou o oEmbed falhar, delega
    integralmente para `fetch_url_metadata`.
    """
    video_id = extract_youtube_video_id(url)
    if not video_id:
        logger.info(f"URL do YouTube sem ID de vídeo válido, usando extração genérica: {url}")
        return await fetch_url_metadata(url)

    try:
        async with httpx.AsyncClient(timeout=settings.METADATA_FETCH_TIMEOUT_SECONDS) as client:
            response = await client.get(YOUTUBE_OEMBED_URL, params={"url": url, "format": "json"})
            response.raise_for_status()
            oembed = response.json()
        if not isinstance(oembed, dict):
            raise ValueError("resposta oEmbed não é um objeto JSON")
        # Campos com tipo inesperado falham aqui e também caem na extração genérica
        return UrlMetadata(
            url=url,
            title=oembed.get("title"),
            description=f"Watch on YouTube - {oembed.get('author_name') or ''}",
            image=oembed.get("thumbnail_url") or YOUTUBE_THUMBNAIL_URL.format(video_id=video_id),
            site_name=oembed.get("provider_name") or "YouTube",
            type="video",
        )
    except (httpx.HTTPError, ValidationError, ValueError) as exc:
        logger.warning(f"oEmbed do YouTube falhou para {url} ({exc}); usando extração genérica.")
        return await fetch_url_metadata(url)

async def fetch_metadata_for(url: str) -> UrlMetadata:
    """Escolhe o caminho do YouTube ou o genérico conforme a URL."""
    if is_youtube_url(url):
        return await fetch_youtube_metadata(url)
    return await fetch_url_metadata(url)
