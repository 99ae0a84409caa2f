"""Application settings and wiring for SEO Site Insights."""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from site_insights.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "app": {
        "name": "SEO Site Insights",
        "data_dir": "data",
        "export_dir": "data/exports",
    },
    "database": {
        "url": None,
        "echo": False,
    },
    "engine": {
        "max_workers": None,
        "max_pending": 8,
        "timeout_seconds": 60,
        "process_workers": None,
    },
    "history": {
        "limit": 12,
    },
    "thresholds": {},
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively overlay *override* on a copy of *base*."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class SiteInsights:
    """Loads settings and hands out configured engines and thresholds.

    Usage::

        app = SiteInsights()
        app.initialize()
        report = app.analyze(load_crawl("crawl.json"))
    """

    def __init__(
        self,
        config_path: str = "config/settings.yaml",
        env_path: str = ".env",
    ):
        self._config_path = config_path
        self._env_path = env_path
        self.config: dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        self._loaded = False
        self._initialized = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> dict[str, Any]:
        """Read .env and settings.yaml (once) and return the merged config."""
        if self._loaded:
            return self.config

        env_file = Path(self._env_path)
        if env_file.exists():
            load_dotenv(env_file)
            logger.info("Loaded environment from %s", self._env_path)

        self.config = _merge(DEFAULT_CONFIG, self._load_config())
        self._loaded = True
        return self.config

    def initialize(self, init_database: bool = True) -> None:
        """Load configuration, create data directories and the database."""
        if self._initialized:
            return
        self.load()

        for dir_key in ("data_dir", "export_dir"):
            dir_path = self.config.get("app", {}).get(dir_key, "")
            if dir_path:
                Path(dir_path).mkdir(parents=True, exist_ok=True)

        if init_database:
            from site_insights.database import init_db
            init_db(database_url=self.database_url, echo=bool(self.config["database"].get("echo")))

        self._initialized = True
        logger.info("SiteInsights initialised.")

    def _load_config(self) -> dict[str, Any]:
        """Load the YAML configuration file."""
        config_file = Path(self._config_path)
        if not config_file.exists():
            logger.warning("Config file not found: %s, using defaults.", self._config_path)
            return {}
        with open(config_file, "r", encoding="utf-8") as fh:
            try:
                config = yaml.safe_load(fh) or {}
            except yaml.YAMLError as exc:
                raise ValidationError(f"Invalid YAML in {self._config_path}: {exc}") from exc
        if not isinstance(config, dict):
            raise ValidationError(f"{self._config_path} must contain a mapping")
        logger.info("Configuration loaded from %s", self._config_path)
        return config

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def database_url(self) -> Optional[str]:
        """``DATABASE_URL`` from the environment wins over settings.yaml."""
        self.load()
        return os.getenv("DATABASE_URL") or self.config["database"].get("url")

    @property
    def thresholds(self):
        from site_insights.workflows import AnalysisThresholds
        return AnalysisThresholds.from_config(self.load())

    @property
    def history_limit(self) -> int:
        return int(self.load()["history"].get("limit", 12))

    def engine_settings(self) -> dict[str, Any]:
        cfg = self.load()["engine"]
        timeout = cfg.get("timeout_seconds")
        return {
            "max_workers": cfg.get("max_workers") or None,
            "max_pending": int(cfg.get("max_pending", 8)),
            "timeout_seconds": float(timeout) if timeout else None,
            "process_workers": cfg.get("process_workers") or None,
        }

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def create_engine(self):
        """A new :class:`AnalysisEngine` using the configured limits."""
        from site_insights.workflows import AnalysisEngine
        return AnalysisEngine(thresholds=self.thresholds, **self.engine_settings())

    def analyze(self, crawl):
        """Synchronous analysis with the configured thresholds."""
        from site_insights.workflows import analyze_site
        return analyze_site(crawl, self.thresholds)
