"""
Tests for the TMDB client

The HTTP session is a mock; no network access.
"""

from unittest.mock import MagicMock

import pytest
import requests

from vendors.tmdb import (
    MovieLookup,
    TMDBClient,
    extract_imdb_id,
    poster_url,
)

DETAILS = {
    "id": 949,
    "poster_path": "/details.jpg",
    "genres": [{"id": 80, "name": "Crime"}, {"id": 18, "name": "Drama"}],
    "release_date": "1995-12-15",
    "runtime": 170,
    "vote_average": 7.93,
    "overview": "Obsessive master thief...",
    "imdb_id": "tt0113277",
}


def _response(payload=None, status=200):
    response = MagicMock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.json.return_value = payload
    return response


def _client(routes):
    """Client whose session answers by URL suffix"""
    session = MagicMock()
    session.headers = {}

    def get(url, params=None, timeout=None):
        for suffix, result in routes.items():
            if url.endswith(suffix):
                if isinstance(result, Exception):
                    raise result
                return result
        return _response({}, status=404)

    session.get.side_effect = get
    return TMDBClient("test-key", session=session), session


class TestHelpers:
    def test_extract_imdb_id(self):
        assert extract_imdb_id("https://www.imdb.com/title/tt0113277/") == "tt0113277"
        assert extract_imdb_id("https://m.IMDB.com/title/tt0113277/?ref_=x") == "tt0113277"
        assert extract_imdb_id("https://example.com/poster.jpg") is None
        assert extract_imdb_id(None) is None

    def test_poster_url(self):
        assert poster_url("/a.jpg") == "https://image.tmdb.org/t/p/original/a.jpg"
        assert poster_url(None) is None

    def test_empty_lookup_not_found(self):
        assert not MovieLookup().found
        assert MovieLookup(genres=["Crime"]).found


class TestClient:
    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            TMDBClient("")

    def test_bearer_header(self):
        _, session = _client({})
        assert session.headers["Authorization"] == "Bearer test-key"

    def test_imdb_link_uses_find(self):
        client, session = _client({
            "/find/tt0113277": _response({"movie_results": [{"id": 949, "poster_path": "/find.jpg"}]}),
            "/movie/949": _response(DETAILS),
        })

        result = client.lookup("https://www.imdb.com/title/tt0113277/")

        assert result.poster == "https://image.tmdb.org/t/p/original/find.jpg"
        assert result.genres == ["Crime", "Drama"]
        assert result.metadata.release_year == 1995
        assert result.metadata.runtime == 170
        assert result.metadata.rating == 7.9
        assert result.metadata.imdb_id == "tt0113277"
        urls = [call.args[0] for call in session.get.call_args_list]
        assert not any(url.endswith("/search/movie") for url in urls)

    def test_imdb_miss_falls_back_to_search(self):
        client, session = _client({
            "/find/tt0000001": _response({"movie_results": []}),
            "/search/movie": _response({"results": [{"id": 949}]}),
            "/movie/949": _response(DETAILS),
        })

        result = client.lookup("https://www.imdb.com/title/tt0000001/")

        assert result.poster == "https://image.tmdb.org/t/p/original/details.jpg"
        assert result.found

    def test_title_search(self):
        client, session = _client({
            "/search/movie": _response({"results": [{"id": 949, "poster_path": "/s.jpg"}]}),
            "/movie/949": _response(DETAILS),
        })

        result = client.lookup("  Heat ")

        assert result.poster.endswith("/s.jpg")
        search_call = session.get.call_args_list[0]
        assert search_call.kwargs["params"] == {"query": "Heat"}

    def test_no_match(self):
        client, _ = _client({"/search/movie": _response({"results": []})})

        assert client.lookup("zzzz") == MovieLookup()

    def test_details_failure_keeps_poster(self):
        client, _ = _client({
            "/search/movie": _response({"results": [{"id": 949, "poster_path": "/s.jpg"}]}),
            "/movie/949": _response({}, status=500),
        })

        result = client.lookup("Heat")

        assert result.poster.endswith("/s.jpg")
        assert result.genres is None
        assert result.metadata is None

    def test_http_error_returns_empty(self):
        client, _ = _client({"/search/movie": _response({}, status=401)})

        assert client.lookup("Heat") == MovieLookup()

    def test_transport_error_returns_empty(self):
        client, _ = _client({"/search/movie": requests.ConnectionError("down")})

        assert client.lookup("Heat") == MovieLookup()

    def test_invalid_json_returns_empty(self):
        response = _response()
        response.json.side_effect = ValueError("not json")
        client, _ = _client({"/search/movie": response})

        assert client.lookup("Heat") == MovieLookup()

    def test_blank_query_skips_http(self):
        client, session = _client({})

        assert client.lookup("   ") == MovieLookup()
        session.get.assert_not_called()
