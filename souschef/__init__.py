"""SousChef: camera-based ingredient scanning and recipe suggestions."""

from .camera import FridgeCamera, Frame, image_frames, load_frame
from .config import (
    CameraConfig,
    DatabaseConfig,
    ScanConfig,
    SousChefConfig,
    VisionConfig,
    load_config,
)
from .cooking import CookingSession
from .merge import MergeSession
from .models import Ingredient, Recipe, RecipeCategory, UserProfile
from .planner import RecipePlanner
from .scanner import ScanController, Scanner
from .vision import (
    CookingProgress,
    Detection,
    VisionBackend,
    VisionConfigError,
    VisionError,
    create_backend,
)

__all__ = [
    "FridgeCamera",
    "Frame",
    "image_frames",
    "load_frame",
    "MergeSession",
    "Scanner",
    "ScanController",
    "CookingSession",
    "RecipePlanner",
    "Ingredient",
    "Recipe",
    "RecipeCategory",
    "UserProfile",
    "VisionBackend",
    "Detection",
    "CookingProgress",
    "VisionError",
    "VisionConfigError",
    "create_backend",
    "SousChefConfig",
    "CameraConfig",
    "ScanConfig",
    "VisionConfig",
    "DatabaseConfig",
    "load_config",
]
