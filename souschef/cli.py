"""CLI entry point for SousChef."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from .camera import FridgeCamera, image_frames
from .config import load_config
from .models import COMMON_RESTRICTIONS, Ingredient
from .scanner import ScanError, Scanner
from .vision import VisionConfigError, create_backend

logger = logging.getLogger(__name__)

DEFAULT_USER = "default"


def main(argv: list[str] | None = None) -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="souschef",
        description="SousChef: scan your ingredients and get recipe ideas",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the config file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # cameras
    sub.add_parser("cameras", help="List available cameras")

    # scan
    scan_parser = sub.add_parser("scan", help="Detect ingredients with the camera")
    scan_parser.add_argument(
        "--image", type=str, nargs="+", help="Use existing image files"
    )
    scan_parser.add_argument(
        "--frames", type=int, default=None, help="Number of camera frames to scan"
    )
    scan_parser.add_argument("--json", action="store_true", help="Output JSON")
    scan_parser.add_argument(
        "--save", action="store_true", help="Replace the saved inventory"
    )

    # inventory
    inv_parser = sub.add_parser("inventory", help="Show the saved inventory")
    inv_parser.add_argument("--json", action="store_true", help="Output JSON")

    # profile
    prof_parser = sub.add_parser("profile", help="Show or edit dietary preferences")
    prof_parser.add_argument(
        "--restriction",
        type=str,
        nargs="*",
        default=None,
        help=f"Dietary restrictions, e.g. {', '.join(COMMON_RESTRICTIONS[:3])}",
    )
    prof_parser.add_argument("--goals", type=str, default=None, help="Nutrition goals")

    # recipes
    rcp_parser = sub.add_parser("recipes", help="Suggest recipes")
    rcp_parser.add_argument(
        "--image", type=str, nargs="+", help="Scan these images instead of the inventory"
    )
    rcp_parser.add_argument(
        "--filter",
        type=str,
        default="all",
        choices=["all", "scavenger", "upgrader", "high_match"],
        help="Only show one kind of recipe",
    )
    rcp_parser.add_argument("--json", action="store_true", help="Output JSON")
    rcp_parser.add_argument(
        "--save", action="store_true", help="Save the suggestions as favourites"
    )

    # cook
    cook_parser = sub.add_parser("cook", help="Cook a saved recipe step by step")
    cook_parser.add_argument("recipe_id", type=str, help="ID of a saved recipe")
    cook_parser.add_argument(
        "--watch", action="store_true", help="Watch the camera for step completion"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)

    try:
        match args.command:
            case "cameras":
                _cmd_cameras()
            case "scan":
                asyncio.run(_cmd_scan(config, args))
            case "inventory":
                _cmd_inventory(config, args)
            case "profile":
                _cmd_profile(config, args)
            case "recipes":
                asyncio.run(_cmd_recipes(config, args))
            case "cook":
                asyncio.run(_cmd_cook(config, args))
    except (ValueError, RuntimeError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _cmd_cameras() -> None:
    cameras = FridgeCamera.list_cameras()
    if not cameras:
        print("No cameras found.")
        return
    print(f"Available cameras: {len(cameras)}")
    for idx in cameras:
        print(f"  camera {idx}")


async def _scan(config, images: list[str] | None, frames: int | None) -> list[Ingredient]:
    backend = create_backend(config)

    if images:
        source = image_frames(images)
        interval = 0.0
    else:
        camera = FridgeCamera(
            camera_index=config.camera.index,
            jpeg_quality=config.camera.jpeg_quality,
        )
        source = camera.stream(max_frames=frames or config.scan.max_frames)
        interval = config.scan.frame_interval

    scanner = Scanner(
        backend,
        max_ingredients=config.scan.max_ingredients,
        min_confidence=config.scan.min_confidence,
        frame_interval=interval,
        on_update=lambda items: logger.debug("Detected %d items", len(items)),
    )
    print("🔍 Scanning ingredients...")
    try:
        return await scanner.scan(source)
    except ScanError as e:
        print(f"Warning: {e}; keeping partial results", file=sys.stderr)
        return e.ingredients


def _print_ingredients(ingredients: list[Ingredient]) -> None:
    for i in ingredients:
        bar = "█" * int(i.confidence * 10)
        mark = "  (verify)" if i.needs_verification else ""
        print(
            f"  {i.name:<20} {i.estimated_quantity:<12} "
            f"{i.confidence:.0%} {bar}{mark}"
        )


async def _cmd_scan(config, args) -> None:
    try:
        ingredients = await _scan(config, args.image, args.frames)
    except VisionConfigError as e:
        print(f"Scan failed: {e}", file=sys.stderr)
        sys.exit(1)

    if args.save:
        from .db import InventoryDB

        db = InventoryDB(config.database.path)
        try:
            db.save_inventory(ingredients)
        finally:
            db.close()

    if args.json:
        print(json.dumps([i.to_dict() for i in ingredients], ensure_ascii=False, indent=2))
        return

    if not ingredients:
        print("No ingredients detected.")
        return
    print(f"\n🥬 Scan complete! Found {len(ingredients)} ingredients:")
    _print_ingredients(ingredients)
    if args.save:
        print("\nInventory saved.")


def _cmd_inventory(config, args) -> None:
    from .db import InventoryDB

    db = InventoryDB(config.database.path)
    try:
        ingredients = db.get_inventory()
    finally:
        db.close()

    if args.json:
        print(json.dumps([i.to_dict() for i in ingredients], ensure_ascii=False, indent=2))
        return
    if not ingredients:
        print("Inventory is empty. Run `souschef scan --save` first.")
        return
    print(f"🥬 Inventory ({len(ingredients)} items):")
    _print_ingredients(ingredients)


def _cmd_profile(config, args) -> None:
    from .db import ProfileDB

    db = ProfileDB(config.database.path)
    try:
        profile = db.get_profile(DEFAULT_USER)
        if args.restriction is not None:
            profile = db.update_dietary_restrictions(DEFAULT_USER, args.restriction)
        if args.goals is not None:
            profile = db.update_nutrition_goals(DEFAULT_USER, args.goals)
    finally:
        db.close()

    restrictions = ", ".join(profile.dietary_restrictions) or "None"
    print(f"Dietary restrictions: {restrictions}")
    print(f"Nutrition goals:      {profile.nutrition_goals or 'No specific goals'}")


async def _cmd_recipes(config, args) -> None:
    from .db import InventoryDB, ProfileDB, RecipeDB
    from .planner import RecipePlanner
    from .recipes import RecipeFilter, create_recipe_service

    if args.image:
        try:
            inventory = await _scan(config, args.image, None)
        except VisionConfigError as e:
            print(f"Scan failed: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        inv_db = InventoryDB(config.database.path)
        try:
            inventory = inv_db.get_inventory()
        finally:
            inv_db.close()

    if not inventory:
        print("No ingredients available.")
        return

    profile_db = ProfileDB(config.database.path)
    try:
        profile = profile_db.get_profile(DEFAULT_USER)
    finally:
        profile_db.close()

    recipe_db = RecipeDB(config.database.path)
    try:
        planner = RecipePlanner(create_recipe_service(config), repository=recipe_db)
        planner.selected_filter = RecipeFilter(args.filter)
        print("🍳 Generating recipes...")
        recipes = await planner.generate(inventory, profile)
        if planner.error is not None:
            print(f"Recipe generation failed: {planner.error}", file=sys.stderr)
            sys.exit(1)

        if args.save:
            for recipe in recipes:
                planner.save_recipe(recipe)
    finally:
        recipe_db.close()

    if args.json:
        print(json.dumps([r.to_dict() for r in recipes], ensure_ascii=False, indent=2))
        return

    if not recipes:
        print("No recipes matched the selected filter.")
        return
    for recipe in recipes:
        print(f"{'─' * 50}")
        print(f"🍽  {recipe.title}  [{recipe.category.value}, {recipe.match_score:.0%} match]")
        if recipe.description:
            print(f"   {recipe.description}")
        if recipe.estimated_time:
            print(f"   Time: {recipe.estimated_time}")
        if recipe.missing_ingredients:
            missing = ", ".join(m.name for m in recipe.missing_ingredients)
            print(f"   Missing: {missing}")
        print(f"   ID: {recipe.id}")
    print(f"{'─' * 50}")


async def _cmd_cook(config, args) -> None:
    from .cooking import CookingSession
    from .db import RecipeDB
    from .recipes import create_recipe_service

    db = RecipeDB(config.database.path)
    try:
        recipe = db.get_recipe(args.recipe_id)
    finally:
        db.close()
    if recipe is None:
        print(f"No saved recipe with ID {args.recipe_id}", file=sys.stderr)
        sys.exit(1)

    camera = FridgeCamera(
        camera_index=config.camera.index,
        jpeg_quality=config.camera.jpeg_quality,
    )
    session = CookingSession(
        recipe,
        create_backend(config),
        recipe_service=create_recipe_service(config),
        frames=lambda: camera.stream(max_frames=config.scan.max_frames),
        completion_confidence=config.cooking.completion_confidence,
        frame_interval=config.cooking.frame_interval,
    )

    print(f"👩‍🍳 {recipe.title}")
    while not session.is_complete:
        n = session.current_step_index + 1
        print(f"\nStep {n}/{len(recipe.steps)}: {session.current_step}")
        if args.watch:
            progress = await session.watch_step()
            print(f"   {progress.feedback} ({progress.confidence:.0%})")
        else:
            print(f"   {await session.get_guidance()}")
        await session.next_step()
    print(f"\n{session.feedback}")
