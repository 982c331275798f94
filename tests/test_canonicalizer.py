"""Tests for ingredient canonicalization"""

import logging
import threading
from unittest.mock import MagicMock, patch

import requests

from mealcart.canonicalizer import (
    CanonicalizationCache,
    OllamaCanonicalizer,
    canonicalize_names,
    clean_mapping,
    parse_mapping,
)


class TestParseMapping:
    """Tests for reading mappings out of model output"""

    def test_plain_json(self):
        assert parse_mapping('{"Tomatoes": "Tomato"}') == {"Tomatoes": "Tomato"}

    def test_json_with_surrounding_text(self):
        text = 'Here you go:\n```json\n{"Cherry Tomato": "Tomato"}\n```'
        assert parse_mapping(text) == {"Cherry Tomato": "Tomato"}

    def test_invalid_json(self):
        assert parse_mapping('{"Tomatoes": }') == {}

    def test_no_json(self):
        assert parse_mapping("I cannot help with that") == {}
        assert parse_mapping("") == {}

    def test_drops_unusable_values(self):
        assert clean_mapping({"A": "B", "C": "", "D": 5, "E": None}) == {"A": "B"}
        assert clean_mapping(["A"]) == {}


class TestCanonicalizationCache:
    """Tests for the shared memo"""

    def test_get_and_put(self):
        cache = CanonicalizationCache()
        cache.put("Tomatoes", "Tomato")
        assert cache.get("Tomatoes") == "Tomato"
        assert cache.get("Banana") is None
        assert "Tomatoes" in cache
        assert len(cache) == 1

    def test_entries_are_not_overwritten(self):
        cache = CanonicalizationCache({"Tomatoes": "Tomato"})
        cache.put("Tomatoes", "Cherry Tomato")
        cache.put_many({"Tomatoes": "Plum Tomato"})
        assert cache.get("Tomatoes") == "Tomato"

    def test_lookup_splits_hits_and_misses(self):
        cache = CanonicalizationCache({"A": "X"})
        hits, misses = cache.lookup(["A", "B"])
        assert hits == {"A": "X"}
        assert misses == ["B"]

    def test_clear_and_snapshot(self):
        cache = CanonicalizationCache({"A": "X"})
        snapshot = cache.snapshot()
        cache.clear()
        assert snapshot == {"A": "X"}
        assert len(cache) == 0

    def test_concurrent_writers(self):
        """Parallel writers leave one consistent value per name"""
        cache = CanonicalizationCache()

        def writer(n):
            for i in range(200):
                cache.put_many({f"item {i}": f"writer {n}", f"own {n} {i}": "x"})

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 200 + 8 * 200
        values = {cache.get(f"item {i}") for i in range(200)}
        assert values <= {f"writer {n}" for n in range(8)}


class TestCanonicalizeNames:
    """Tests for the canonicalization step"""

    def test_identity_without_collaborator(self):
        assert canonicalize_names(["Tomato", "Banana"]) == {"Banana": "Banana", "Tomato": "Tomato"}

    def test_blank_names_dropped(self):
        assert canonicalize_names(["", "  ", None]) == {}

    def test_collaborator_mapping(self):
        def fake(names, timeout):
            return {"Cherry Tomato": "Tomato"}

        result = canonicalize_names(["Cherry Tomato", "Tomato", "Egg"], canonicalize=fake)
        assert result == {"Cherry Tomato": "Tomato", "Egg": "Egg", "Tomato": "Tomato"}

    def test_batch_is_sorted_distinct(self):
        fake = MagicMock(return_value={})
        canonicalize_names(["Egg", "Apple", "Egg"], canonicalize=fake, timeout=5)
        fake.assert_called_once_with(["Apple", "Egg"], 5)

    def test_cache_hits_skip_collaborator(self):
        fake = MagicMock(return_value={})
        cache = CanonicalizationCache({"Tomatoes": "Tomato"})
        result = canonicalize_names(["Tomatoes"], canonicalize=fake, cache=cache)
        assert result == {"Tomatoes": "Tomato"}
        fake.assert_not_called()

    def test_only_misses_sent(self):
        fake = MagicMock(return_value={"Bananas": "Banana"})
        cache = CanonicalizationCache({"Tomatoes": "Tomato"})
        result = canonicalize_names(["Tomatoes", "Bananas"], canonicalize=fake, cache=cache, timeout=3)
        fake.assert_called_once_with(["Bananas"], 3)
        assert result == {"Bananas": "Banana", "Tomatoes": "Tomato"}
        assert cache.get("Bananas") == "Banana"

    def test_unanswered_names_not_cached(self):
        fake = MagicMock(return_value={"Bananas": "Banana", "Unasked": "Nope"})
        cache = CanonicalizationCache()
        canonicalize_names(["Bananas", "Egg"], canonicalize=fake, cache=cache)
        assert cache.snapshot() == {"Bananas": "Banana"}

    def test_timeout_falls_back_to_identity(self, caplog):
        """A slow collaborator does not block the build"""
        release = threading.Event()

        def slow(names, timeout):
            release.wait(5)
            return {"Cherry Tomato": "Tomato"}

        cache = CanonicalizationCache()
        try:
            with caplog.at_level(logging.WARNING, logger="mealcart.canonicalizer"):
                result = canonicalize_names(["Cherry Tomato"], canonicalize=slow, cache=cache, timeout=0.05)
        finally:
            release.set()

        assert result == {"Cherry Tomato": "Cherry Tomato"}
        assert len(cache) == 0
        assert "timed out" in caplog.text

    def test_exception_falls_back_to_identity(self, caplog):
        def broken(names, timeout):
            raise RuntimeError("model not loaded")

        with caplog.at_level(logging.WARNING, logger="mealcart.canonicalizer"):
            result = canonicalize_names(["Egg"], canonicalize=broken)

        assert result == {"Egg": "Egg"}
        assert "model not loaded" in caplog.text

    def test_malformed_answer_is_identity(self):
        def fake(names, timeout):
            return "Tomato"

        assert canonicalize_names(["Tomatoes"], canonicalize=fake) == {"Tomatoes": "Tomatoes"}

    def test_idempotent_on_canonical_names(self):
        table = {"Cherry Tomato": "Tomato", "Tomatoes": "Tomato", "Tomato": "Tomato"}

        def fake(names, timeout):
            return {n: table[n] for n in names if n in table}

        first = canonicalize_names(["Cherry Tomato", "Tomatoes"], canonicalize=fake)
        second = canonicalize_names(list(first.values()), canonicalize=fake)
        assert all(second[v] == v for v in first.values())


class TestOllamaCanonicalizer:
    """Tests for the Ollama client"""

    def test_posts_prompt_and_parses_response(self):
        mock_response = MagicMock()
        mock_response.json.return_value = {"response": '{"Tomatoes": "Tomato"}'}

        with patch('mealcart.canonicalizer.requests.post', return_value=mock_response) as mock_post:
            client = OllamaCanonicalizer(url="http://ollama.test/api/generate", model="test-model")
            result = client(["Tomatoes"], timeout=7)

        assert result == {"Tomatoes": "Tomato"}
        args, kwargs = mock_post.call_args
        assert args[0] == "http://ollama.test/api/generate"
        assert kwargs["timeout"] == 7
        assert kwargs["json"]["model"] == "test-model"
        assert kwargs["json"]["format"] == "json"
        assert kwargs["json"]["stream"] is False
        assert '"Tomatoes"' in kwargs["json"]["prompt"]

    def test_empty_batch_skips_request(self):
        with patch('mealcart.canonicalizer.requests.post') as mock_post:
            assert OllamaCanonicalizer()([]) == {}
        mock_post.assert_not_called()

    def test_connection_error_recovered_by_canonicalize_names(self):
        with patch('mealcart.canonicalizer.requests.post', side_effect=requests.ConnectionError("refused")):
            result = canonicalize_names(["Egg"], canonicalize=OllamaCanonicalizer(), timeout=1)
        assert result == {"Egg": "Egg"}
