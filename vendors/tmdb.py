"""
TMDB Client - Poster, genre and metadata lookup

Lookup order:
- Query contains an IMDB title link -> /find/{imdb_id}?external_source=imdb_id
- Otherwise (or nothing found)     -> /search/movie?query=...
- Then /movie/{id} for genres and metadata

Best-effort collaborator: every failure is logged, counted, and turned into
an empty MovieLookup. Callers never see TMDB errors.
"""

import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import get_logger
from database.models import MovieMetadata
from exceptions import MetadataLookupError
from server.metrics import metrics

logger = get_logger(__name__).bind(component="vendor", vendor="tmdb")

BASE_URL = "https://api.themoviedb.org/3"
POSTER_BASE_URL = "https://image.tmdb.org/t/p/original"
IMDB_TITLE_PATTERN = re.compile(r"imdb\.com/title/(tt\d+)", re.IGNORECASE)


def extract_imdb_id(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    match = IMDB_TITLE_PATTERN.search(value)
    return match.group(1) if match else None


def poster_url(poster_path: Optional[str]) -> Optional[str]:
    return f"{POSTER_BASE_URL}{poster_path}" if poster_path else None


@dataclass
class MovieLookup:
    """Result of a TMDB lookup; every field None when nothing was found"""

    poster: Optional[str] = None
    genres: Optional[List[str]] = None
    metadata: Optional[MovieMetadata] = None

    @property
    def found(self) -> bool:
        return self.poster is not None or self.genres is not None or self.metadata is not None


class TMDBClient:
    """Synchronous TMDB API client with retrying HTTP session"""

    def __init__(self, api_key: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        if not api_key:
            raise ValueError("api_key required for TMDB client")

        self.timeout = timeout
        self.session = session or self._create_session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        })

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self):
        self.session.close()

    def _create_session(self) -> requests.Session:
        """
        Create HTTP session with retry logic.

        Retry strategy:
        - 3 total retries
        - Exponential backoff (0.5s, 1s, 2s)
        - Retry on 500, 502, 503, 504 (server errors only)
        """
        session = requests.Session()

        retry_strategy = Retry(
            total=3,
            backoff_factor=0.5,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a TMDB endpoint and decode JSON

        Raises:
            MetadataLookupError on transport errors, non-2xx or bad JSON
        """
        url = f"{BASE_URL}{path}"
        start_time = time.time()
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise MetadataLookupError(f"TMDB request failed: {e}", url=url)
        finally:
            metrics.tmdb_request_duration.observe(time.time() - start_time)

        if not response.ok:
            raise MetadataLookupError(
                f"TMDB returned HTTP {response.status_code}",
                status_code=response.status_code,
                url=url,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MetadataLookupError(f"TMDB returned invalid JSON: {e}", url=url)
        if not isinstance(data, dict):
            raise MetadataLookupError("TMDB returned unexpected payload", url=url)
        return data

    def _find_by_imdb(self, imdb_id: str) -> Optional[Dict[str, Any]]:
        data = self._get(f"/find/{imdb_id}", params={"external_source": "imdb_id"})
        results = data.get("movie_results") or []
        return results[0] if results else None

    def _search(self, title: str) -> Optional[Dict[str, Any]]:
        data = self._get("/search/movie", params={"query": title})
        results = data.get("results") or []
        return results[0] if results else None

    def _details(self, tmdb_id: int) -> Dict[str, Any]:
        return self._get(f"/movie/{tmdb_id}")

    @staticmethod
    def _parse_details(details: Dict[str, Any]) -> MovieMetadata:
        release_date = details.get("release_date") or ""
        release_year = int(release_date[:4]) if release_date[:4].isdigit() else None
        vote_average = details.get("vote_average")
        return MovieMetadata(
            release_year=release_year,
            runtime=details.get("runtime") or None,
            rating=round(float(vote_average), 1) if vote_average else None,
            overview=details.get("overview") or None,
            imdb_id=details.get("imdb_id") or None,
        )

    def lookup(self, query: str) -> MovieLookup:
        """Look up a movie by IMDB link or title

        Returns an empty MovieLookup when nothing matches or TMDB fails.
        """
        if not query or not query.strip():
            return MovieLookup()

        try:
            match = None
            imdb_id = extract_imdb_id(query)
            if imdb_id:
                match = self._find_by_imdb(imdb_id)
            if match is None:
                match = self._search(query.strip())
            if match is None:
                metrics.tmdb_lookups.labels(status="not_found").inc()
                logger.info("tmdb lookup found nothing", query=query[:100])
                return MovieLookup()

            poster = poster_url(match.get("poster_path"))
            try:
                details = self._details(match["id"])
            except MetadataLookupError as e:
                # Poster from the search hit is still usable
                logger.warning("tmdb details failed", tmdb_id=match.get("id"), error=str(e))
                metrics.tmdb_lookups.labels(status="partial").inc()
                return MovieLookup(poster=poster)

            genres = [g["name"] for g in details.get("genres") or [] if g.get("name")]
            metrics.tmdb_lookups.labels(status="found").inc()
            return MovieLookup(
                poster=poster or poster_url(details.get("poster_path")),
                genres=genres or None,
                metadata=self._parse_details(details),
            )

        except (MetadataLookupError, KeyError, TypeError, ValueError) as e:
            metrics.tmdb_lookups.labels(status="error").inc()
            metrics.record_error("tmdb", e)
            logger.warning("tmdb lookup failed", query=query[:100], error=str(e), error_type=type(e).__name__)
            return MovieLookup()
