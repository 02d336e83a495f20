"""TOML configuration loader for SousChef."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class CameraConfig:
    index: int = 0
    jpeg_quality: int = 80


@dataclass
class ScanConfig:
    max_ingredients: int = 50
    min_confidence: float = 0.5
    frame_interval: float = 1.0  # seconds between frames
    max_frames: int = 30


@dataclass
class OvershootVisionConfig:
    api_key: str = ""
    url: str = "https://api.overshoot.ai/v1/detect"
    timeout: float = 30.0


@dataclass
class GeminiVisionConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"


@dataclass
class ClaudeVisionConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class VisionConfig:
    backend: str = "overshoot"
    overshoot: OvershootVisionConfig = field(default_factory=OvershootVisionConfig)
    gemini: GeminiVisionConfig = field(default_factory=GeminiVisionConfig)
    claude: ClaudeVisionConfig = field(default_factory=ClaudeVisionConfig)


@dataclass
class RecipeConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"
    temperature: float = 0.7


@dataclass
class CookingConfig:
    completion_confidence: float = 0.8
    frame_interval: float = 1.0  # seconds between watched frames


@dataclass
class DatabaseConfig:
    path: str = "~/.config/souschef/souschef.db"


@dataclass
class SousChefConfig:
    camera: CameraConfig = field(default_factory=CameraConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)
    recipes: RecipeConfig = field(default_factory=RecipeConfig)
    cooking: CookingConfig = field(default_factory=CookingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def load_config(path: str | Path | None = None) -> SousChefConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cam = raw.get("camera", {})
    scn = raw.get("scan", {})
    vis = raw.get("vision", {})
    rcp = raw.get("recipes", {})
    ckg = raw.get("cooking", {})
    dbs = raw.get("database", {})

    overshoot_cfg = vis.get("overshoot", {})
    gemini_cfg = vis.get("gemini", {})
    claude_cfg = vis.get("claude", {})

    # Resolve API keys: config file → environment variable
    overshoot_api_key = overshoot_cfg.get("api_key", "") or os.environ.get(
        "OVERSHOOT_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    # Recipe generation shares the Gemini key unless given its own
    recipes_api_key = rcp.get("api_key", "") or gemini_api_key

    return SousChefConfig(
        camera=CameraConfig(
            index=cam.get("index", 0),
            jpeg_quality=cam.get("jpeg_quality", 80),
        ),
        scan=ScanConfig(
            max_ingredients=scn.get("max_ingredients", 50),
            min_confidence=scn.get("min_confidence", 0.5),
            frame_interval=scn.get("frame_interval", 1.0),
            max_frames=scn.get("max_frames", 30),
        ),
        vision=VisionConfig(
            backend=vis.get("backend", "overshoot"),
            overshoot=OvershootVisionConfig(
                api_key=overshoot_api_key,
                url=overshoot_cfg.get("url", "https://api.overshoot.ai/v1/detect"),
                timeout=overshoot_cfg.get("timeout", 30.0),
            ),
            gemini=GeminiVisionConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.0-flash"),
            ),
            claude=ClaudeVisionConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
        ),
        recipes=RecipeConfig(
            api_key=recipes_api_key,
            model=rcp.get("model", "gemini-2.0-flash"),
            temperature=rcp.get("temperature", 0.7),
        ),
        cooking=CookingConfig(
            completion_confidence=ckg.get("completion_confidence", 0.8),
            frame_interval=ckg.get("frame_interval", 1.0),
        ),
        database=DatabaseConfig(
            path=dbs.get("path", "~/.config/souschef/souschef.db"),
        ),
    )
