"""Builds the confusable table from the upstream Unicode confusables.txt."""

import json
import logging
import os
import time
from datetime import datetime, timezone

import requests

from .dataset import ConfusableDataset, DatasetError, parse_dataset
from .rules import OverrideRules
from .tables import ConfusableTable, DEFAULT_TABLE_PATH

logger = logging.getLogger("glyphskel.builder")

DEFAULT_BASE_URL = "https://www.unicode.org/Public/security/latest/"
DATASET_NAME = "confusables.txt"

DEFAULT_CACHE_DIR = os.path.expanduser("~/.glyphskel/cache")
DEFAULT_TTL = 7 * 86400  # one week


class FetchError(RuntimeError):
    """The dataset could not be read or downloaded."""


class TableBuilder:
    """Fetch (or read) confusables.txt, apply override rules, emit a table."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        local_path: str | None = None,
        cache_dir: str = DEFAULT_CACHE_DIR,
        ttl: int = DEFAULT_TTL,
        rules: OverrideRules | None = None,
    ):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.local_path = os.path.expanduser(local_path) if local_path else None
        self.cache_dir = os.path.expanduser(cache_dir)
        self.ttl = ttl
        self.rules = rules

    @property
    def source(self) -> str:
        """Where the dataset is read from (file path or URL)."""
        if self.local_path:
            if os.path.isdir(self.local_path):
                return os.path.join(self.local_path, DATASET_NAME)
            return self.local_path
        return self.base_url + DATASET_NAME

    def read_dataset(self) -> str:
        """Return the dataset text. Raises FetchError or DatasetError."""
        return self._read()[0]

    def load_dataset(self) -> ConfusableDataset:
        """Read and parse the dataset."""
        return self._read()[1]

    def build(self) -> ConfusableTable:
        """Read, parse and fold the dataset into a ConfusableTable."""
        dataset = self.load_dataset()
        rules = self.rules if self.rules is not None else OverrideRules()
        mapping = rules.build_map(dataset.entries)
        return ConfusableTable(
            mapping=mapping,
            header=dataset.header,
            source=self.source,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )

    def build_and_save(self, output_path: str = DEFAULT_TABLE_PATH) -> ConfusableTable:
        table = self.build()
        table.save(output_path)
        return table

    # -- Retrieval ------------------------------------------------------------

    def _read(self) -> tuple[str, ConfusableDataset]:
        if self.local_path:
            text = self._read_local(self.source)
            return text, parse_dataset(text)
        return self._read_remote(self.source)

    def _read_local(self, path: str) -> str:
        try:
            with open(path, "rb") as f:
                raw = f.read()
        except OSError as e:
            raise FetchError(f"Cannot open {path}: {e}") from e
        logger.info("Read %s (%d bytes)", path, len(raw))
        return self._decode(raw, path)

    def _read_remote(self, url: str) -> tuple[str, ConfusableDataset]:
        cache_path = os.path.join(self.cache_dir, DATASET_NAME)
        meta_path = cache_path + ".meta.json"

        if self._cache_fresh(meta_path, url) and os.path.exists(cache_path):
            try:
                with open(cache_path, "rb") as f:
                    text = self._decode(f.read(), cache_path)
                dataset = parse_dataset(text)
                logger.info("Using cached %s", cache_path)
                return text, dataset
            except (OSError, FetchError, DatasetError) as e:
                logger.warning("Ignoring unusable cache %s: %s", cache_path, e)

        # Only a download that parses is cached
        raw = self._fetch_url(url)
        text = self._decode(raw, url)
        dataset = parse_dataset(text)
        os.makedirs(self.cache_dir, exist_ok=True)
        with open(cache_path, "wb") as f:
            f.write(raw)
        self._write_meta(meta_path, url)
        return text, dataset

    def _fetch_url(self, url: str) -> bytes:
        logger.info("Downloading %s", url)
        try:
            resp = requests.get(url, timeout=30)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e
        if resp.status_code != 200:
            raise FetchError(f"Failed to fetch {url}: HTTP {resp.status_code}")
        return resp.content

    @staticmethod
    def _decode(raw: bytes, where: str) -> str:
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise FetchError(f"{where} is not valid UTF-8: {e}") from e

    # -- Cache helpers --------------------------------------------------------

    def _cache_fresh(self, meta_path: str, url: str | None = None) -> bool:
        if not os.path.exists(meta_path):
            return False
        try:
            with open(meta_path) as f:
                meta = json.load(f)
            if url is not None and meta.get("url", url) != url:
                return False
            return (time.time() - meta.get("timestamp", 0)) < self.ttl
        except (json.JSONDecodeError, OSError):
            return False

    def _write_meta(self, meta_path: str, url: str):
        with open(meta_path, "w") as f:
            json.dump({"timestamp": time.time(), "url": url}, f)
