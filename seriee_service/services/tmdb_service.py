"""Hybrid metadata client: caching backend first, metadata API as fallback."""
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional
import logging
import threading
import time

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from seriee_service.config import (
    get_backend_cache_url,
    get_tmdb_api_key,
    get_tmdb_base_url,
    use_backend_cache,
)

logger = logging.getLogger(__name__)

SERIES_APPENDS = "images,credits,videos,external_ids,translations,watch/providers"
SEASON_APPENDS = "images,videos"
EPISODE_APPENDS = "credits,images,videos,external_ids"

BACKEND_TIMEOUT = 0.5
BACKEND_RETRY_INTERVAL = 30
HERO_DETAIL_LIMIT = 40
DETAIL_CACHE_TTL = 300
DETAIL_CACHE_MAX_ENTRIES = 256


class TmdbConfigurationError(ValueError):
    """Raised when the metadata API is called without an API key."""


class DetailCache:
    """
    Size-capped cache whose entries expire after `ttl` seconds.

    The least recently used entry is evicted when the cache is full.
    """

    def __init__(
            self,
            ttl: float = DETAIL_CACHE_TTL,
            max_entries: int = DETAIL_CACHE_MAX_ENTRIES,
            clock: Callable[[], float] = time.monotonic
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[str, tuple[float, Dict]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._entries)

    def get(self, key: str) -> Optional[Dict]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            stored_at, value = entry
            if self.clock() - stored_at >= self.ttl:
                del self._entries[key]
                return None

            self._entries.move_to_end(key)
            return value

    def set(self, key: str, value: Dict) -> None:
        with self._lock:
            self._entries[key] = (self.clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)


class TmdbService:
    """
    Client for the TV metadata API.

    Every read first asks the caching backend (short timeout). When the
    backend is unreachable it is skipped for BACKEND_RETRY_INTERVAL seconds
    and requests go straight to the metadata API.
    """

    def __init__(
            self,
            api_key: Optional[str] = None,
            base_url: Optional[str] = None,
            backend_url: Optional[str] = None,
            use_backend: Optional[bool] = None,
            max_workers: int = 8,
            cache: Optional[DetailCache] = None
    ):
        self.api_key = api_key or get_tmdb_api_key()
        self.base_url = base_url or get_tmdb_base_url()
        self.backend_url = backend_url or get_backend_cache_url()
        self.use_backend = use_backend_cache() if use_backend is None else use_backend
        self.max_workers = max_workers

        # Configure session with retries
        self.session = requests.Session()
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        # noinspection HttpUrlsUsage
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        # Backend attempts must fail fast, so no retries here
        self.backend_session = requests.Session()

        self.backend_offline = False
        self.last_backend_check = 0.0

        # Shared by every request the worker serves, so bounded and short-lived
        self.cache = cache if cache is not None else DetailCache()

    # ===== TRANSPORT =====

    def _fetch_direct(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict:
        """Call the metadata API directly."""
        if not self.api_key:
            raise TmdbConfigurationError("TMDB_API_KEY is not configured")

        query = {'api_key': self.api_key}
        if params:
            query.update(params)

        url = f"{self.base_url}{endpoint}"
        response = self.session.get(url, params=query, timeout=10)
        response.raise_for_status()
        return response.json()

    def _get_from_backend(self, endpoint: str, force_direct: bool = False) -> Optional[Any]:
        """
        Try the caching backend.

        Returns:
            Parsed JSON, or None when the backend is skipped, offline or
            answers with an error status.
        """
        if force_direct or not self.use_backend:
            return None

        if self.backend_offline and time.time() - self.last_backend_check < BACKEND_RETRY_INTERVAL:
            return None

        try:
            response = self.backend_session.get(
                f"{self.backend_url}{endpoint}",
                timeout=BACKEND_TIMEOUT
            )
        except requests.RequestException as e:
            logger.warning(f"Backend cache unreachable ({e}); using metadata API directly")
            self.backend_offline = True
            self.last_backend_check = time.time()
            return None

        if response.ok:
            self.backend_offline = False
            return response.json()

        return None

    # ===== SERIES / SEASON / EPISODE =====

    def get_series_details(self, series_id: int, force_direct: bool = False) -> Dict:
        """Fetch a series with images, credits, videos, ids, translations and providers."""
        key = f"series:{series_id}"
        cached = None if force_direct else self.cache.get(key)
        if cached is not None:
            return cached

        data = self._get_from_backend(f"/series/{series_id}", force_direct)
        if not data:
            data = self._fetch_direct(f"/tv/{series_id}", {'append_to_response': SERIES_APPENDS})

        if data:
            self.cache.set(key, data)
        return data

    def get_season_details(self, series_id: int, season_number: int, force_direct: bool = False) -> Dict:
        """Fetch a season with images and videos."""
        key = f"season:{series_id}-{season_number}"
        cached = None if force_direct else self.cache.get(key)
        if cached is not None:
            return cached

        data = self._get_from_backend(f"/series/{series_id}/season/{season_number}", force_direct)
        if not data:
            data = self._fetch_direct(
                f"/tv/{series_id}/season/{season_number}",
                {'append_to_response': SEASON_APPENDS}
            )

        if data:
            self.cache.set(key, data)
        return data

    def get_episode_details(self, series_id: int, season_number: int, episode_number: int) -> Dict:
        """Fetch a single episode with credits (guest stars), images, videos and ids."""
        return self._fetch_direct(
            f"/tv/{series_id}/season/{season_number}/episode/{episode_number}",
            {'append_to_response': EPISODE_APPENDS}
        )

    # ===== LISTS =====

    def get_trending(self, kind: str = 'weekly', force_direct: bool = False) -> List[Dict]:
        """Trending series for the week ('weekly') or the day (anything else)."""
        time_window = 'week' if kind == 'weekly' else 'day'

        cached = self._get_from_backend(f"/trending?type={kind}", force_direct)
        if cached:
            return cached

        try:
            data = self._fetch_direct(f"/trending/tv/{time_window}")
            return data.get('results') or []
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Trending fetch failed: {e}")
            return []

    def get_top_rated(self, force_direct: bool = False) -> List[Dict]:
        cached = self._get_from_backend("/trending?type=top_rated", force_direct)
        if cached:
            return cached

        data = self._fetch_direct("/tv/top_rated")
        return data.get('results') or []

    def get_new_releases(self, force_direct: bool = False) -> List[Dict]:
        """Series airing today."""
        cached = self._get_from_backend("/trending?type=new_releases", force_direct)
        if cached:
            return cached

        data = self._fetch_direct("/tv/airing_today")
        return data.get('results') or []

    def get_hero_episodes(self, force_direct: bool = False) -> List[Dict]:
        """
        Series currently on the air, enriched with full details.

        Details carry next_episode_to_air / last_episode_to_air, which the
        list endpoint omits. Only the first HERO_DETAIL_LIMIT shows are
        enriched; a show whose detail call fails keeps its list entry.
        """
        cached = self._get_from_backend("/hero/new-episodes", force_direct)
        if cached:
            return cached

        try:
            list_data = self._fetch_direct("/tv/on_the_air")
            initial_list = (list_data.get('results') or [])[:HERO_DETAIL_LIMIT]

            def enrich(show: Dict) -> Dict:
                try:
                    return self._fetch_direct(f"/tv/{show['id']}")
                except (requests.RequestException, ValueError) as e:
                    logger.warning(f"Failed to enrich hero show {show.get('id')}: {e}")
                    return show

            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                enriched = list(executor.map(enrich, initial_list))

            logger.info(f"✓ Loaded {len(enriched)} hero shows")
            return enriched
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Hero fetch failed: {e}")
            return []

    # ===== SEARCH / RECOMMENDATIONS =====

    def search_series(self, query: str) -> Dict:
        """Search series by name. Not cached."""
        return self._fetch_direct("/search/tv", {'query': query})

    def get_recommendations(self, series_id: int) -> List[Dict]:
        data = self._fetch_direct(f"/tv/{series_id}/recommendations")
        return data.get('results') or []
