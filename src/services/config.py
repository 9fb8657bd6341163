"""
Loads and handles config from config.yml
API credentials (SERPER_API_KEY, PRODUCTHUNT_API_KEY, ...) are loaded from .env for security
"""
import os
from typing import List, Dict, Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel


class TopicConfig(BaseModel):
    """A topic to hunt evidence for. Treated as read-only input."""
    id: str
    name: str
    search_keywords: List[str] = []
    platforms: List[str] = []
    lead_user_patterns: List[str] = []


class ProxyConfig(BaseModel):
    """Failover behaviour of the proxy fetch client."""
    strategies: List[str] = []  # names, empty means the built-in chain
    failure_threshold: int = 3
    reset_interval_seconds: float = 300.0


class SerperConfig(BaseModel):
    """Metered Google search via serper.dev."""
    api_key: Optional[str] = None
    max_queries: int = 2500
    safety_buffer: int = 100

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


class ProductHuntConfig(BaseModel):
    api_key: Optional[str] = None
    api_secret: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_secret)


class SourcesConfig(BaseModel):
    """Which adapters run and how politely."""
    enabled: List[str] = []  # empty means every known source
    max_items_per_source: int = 20
    delay_scale: float = 1.0  # multiplies every inter-request pause
    use_optional_providers: Optional[bool] = None


class Config(BaseModel):
    # Core
    DATABASE_PATH: str
    OUTPUT_DIR: str = "output"

    # HTTP
    HTTP_TIMEOUT: float = 30.0
    USER_AGENT: str = "opportunity-forge/1.0"
    GITHUB_TOKEN: Optional[str] = None

    # Scoring
    SCORING_PROFILE: str = "default"
    MIN_SCORE: int = 0

    proxy: ProxyConfig = ProxyConfig()
    serper: SerperConfig = SerperConfig()
    producthunt: ProductHuntConfig = ProductHuntConfig()
    sources: SourcesConfig = SourcesConfig()

    topics: List[TopicConfig] = []


def _bool(value: str | bool) -> bool:
    """Convert string or bool to boolean."""
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes", "on")


def _get_config_path() -> str:
    """Get the path to config.yml, handling different working directories."""
    # Try relative path first
    if os.path.exists('resources/config.yml'):
        return 'resources/config.yml'

    # Try from project root
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_path = os.path.join(project_root, 'resources', 'config.yml')
    if os.path.exists(config_path):
        return config_path

    raise FileNotFoundError("Cannot find resources/config.yml")


def _parse_topic(data: Dict[str, Any]) -> TopicConfig:
    if "id" not in data or "name" not in data:
        raise ValueError(f"Topic needs 'id' and 'name': {data}")

    return TopicConfig(
        id=str(data["id"]),
        name=str(data["name"]),
        search_keywords=data.get("search_keywords", []) or [],
        platforms=data.get("platforms", []) or [],
        lead_user_patterns=data.get("lead_user_patterns", []) or [],
    )


def _parse_sources(data: Dict[str, Any]) -> SourcesConfig:
    optional = data.get("use_optional_providers")
    return SourcesConfig(
        enabled=data.get("enabled", []) or [],
        max_items_per_source=int(data.get("max_items_per_source", 20)),
        delay_scale=float(data.get("delay_scale", 1.0)),
        use_optional_providers=None if optional is None else _bool(optional),
    )


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from config.yml and API credentials from .env."""
    # Load .env for sensitive credentials
    load_dotenv()

    config_path = path or _get_config_path()

    with open(config_path, 'r', encoding='utf-8') as file:
        config = yaml.safe_load(file) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Malformed config file: {config_path}")

    topics = [_parse_topic(t) for t in config.get("topics", []) or []]

    seen = set()
    for topic in topics:
        if topic.id in seen:
            raise ValueError(f"Duplicate topic id: {topic.id}")
        seen.add(topic.id)

    proxy = config.get("proxy", {}) or {}
    serper = config.get("serper", {}) or {}

    return Config(
        DATABASE_PATH=config.get("DATABASE_PATH", "data/app.db"),
        OUTPUT_DIR=config.get("OUTPUT_DIR", "output"),

        HTTP_TIMEOUT=float(config.get("HTTP_TIMEOUT", 30)),
        USER_AGENT=config.get("USER_AGENT", "opportunity-forge/1.0"),
        GITHUB_TOKEN=os.getenv("GITHUB_TOKEN"),

        SCORING_PROFILE=config.get("SCORING_PROFILE", "default"),
        MIN_SCORE=int(config.get("MIN_SCORE", 0)),

        proxy=ProxyConfig(
            strategies=proxy.get("strategies", []) or [],
            failure_threshold=int(proxy.get("failure_threshold", 3)),
            reset_interval_seconds=float(proxy.get("reset_interval_seconds", 300)),
        ),
        serper=SerperConfig(
            api_key=os.getenv("SERPER_API_KEY"),
            max_queries=int(serper.get("max_queries", 2500)),
            safety_buffer=int(serper.get("safety_buffer", 100)),
        ),
        producthunt=ProductHuntConfig(
            api_key=os.getenv("PRODUCTHUNT_API_KEY"),
            api_secret=os.getenv("PRODUCTHUNT_API_SECRET"),
        ),
        sources=_parse_sources(config.get("sources", {}) or {}),
        topics=topics,
    )


def get_topic(config: Config, topic_id: str) -> TopicConfig:
    """Look up a configured topic by id."""
    for topic in config.topics:
        if topic.id == topic_id:
            return topic
    raise ValueError(f"Unknown topic: {topic_id}")
