import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any, Optional

from . import __version__
from .collaborators import HttpTaskBreakdownGenerator, SqlProfileStore, StaticTaskBreakdownGenerator
from .config import EngineConfig
from .coordinator import AnalysisCoordinator
from .env import load_env, runtime_settings_from_env
from .errors import ConstraintViolation, ProfileNotFoundError, ValidationError
from .models import Profile, ScoringWeights
from .roadmap import RoadmapScheduler
from .schema import parse_engine_config, parse_profile, parse_tasks, parse_weights
from .scoring import ScoringEngine
from .simulation import SimulationEngine


def _read_json(path_str: str) -> Any:
    input_path = Path(path_str)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _load_profile(args: argparse.Namespace) -> Profile:
    return parse_profile(_read_json(args.input))


def _load_weights(args: argparse.Namespace) -> ScoringWeights:
    if getattr(args, "weights", None):
        return parse_weights(_read_json(args.weights))
    return ScoringWeights()


def _load_config(args: argparse.Namespace) -> EngineConfig:
    if getattr(args, "config", None):
        return parse_engine_config(_read_json(args.config))
    return EngineConfig.default()


def _parse_date(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise SystemExit(f"Invalid date (expected YYYY-MM-DD): {value}")


def _require_path(profile: Profile, path_id: str):
    path = profile.get_path(path_id)
    if path is None:
        raise SystemExit(f"Path not found in profile: {path_id}")
    return path


def cmd_validate(args: argparse.Namespace) -> None:
    try:
        parse_profile(_read_json(args.input))
    except ValidationError as e:
        print("Invalid:")
        for err in e.errors or [e.message]:
            print(f" - {err}")
        raise SystemExit(2)
    print("Valid")


def cmd_score(args: argparse.Namespace) -> None:
    profile = _load_profile(args)
    engine = ScoringEngine(_load_config(args))
    ranked = engine.score_all_paths(profile, profile.paths, _load_weights(args))
    _print_json([b.to_dict() for b in ranked])


def cmd_simulate(args: argparse.Namespace) -> None:
    profile = _load_profile(args)
    path = _require_path(profile, args.path_id)
    result = SimulationEngine(_load_config(args)).simulate(profile, path)
    _print_json(result.to_dict())


def cmd_roadmap(args: argparse.Namespace) -> None:
    profile = _load_profile(args)
    path = _require_path(profile, args.path_id)
    config = _load_config(args)
    simulation = SimulationEngine(config).simulate(profile, path)
    tasks = parse_tasks(_read_json(args.tasks)) if args.tasks else []
    roadmap = RoadmapScheduler(config).schedule(
        profile, path, simulation, tasks, _parse_date(args.start), weekly_hours=args.hours
    )
    _print_json(roadmap.to_dict())


def _build_coordinator(args: argparse.Namespace, profile_source=None) -> AnalysisCoordinator:
    settings = runtime_settings_from_env()
    generator = None
    if args.tasks:
        generator = StaticTaskBreakdownGenerator(parse_tasks(_read_json(args.tasks)))
    elif args.tasks_url or settings.task_service_url:
        generator = HttpTaskBreakdownGenerator(args.tasks_url or settings.task_service_url,
                                               timeout=settings.collaborator_timeout)
    return AnalysisCoordinator(
        config=_load_config(args),
        task_generator=generator,
        profile_source=profile_source,
        top_n=args.top_n or settings.top_n,
        collaborator_timeout=settings.collaborator_timeout,
        max_attempts=settings.max_attempts,
    )


def cmd_analyze(args: argparse.Namespace) -> None:
    weights = _load_weights(args)
    start = _parse_date(args.start)
    if args.profile_id:
        store = SqlProfileStore(Path(args.db or runtime_settings_from_env().db_path))
        coordinator = _build_coordinator(args, profile_source=store)
        try:
            result = coordinator.analyze_stored_profile(args.profile_id, weights, start)
        except ProfileNotFoundError as e:
            raise SystemExit(str(e))
    elif args.input:
        coordinator = _build_coordinator(args)
        result = coordinator.run_full_analysis(_load_profile(args), weights, start)
    else:
        raise SystemExit("Provide --input or --profile-id")
    _print_json(result.to_dict())


def cmd_save(args: argparse.Namespace) -> None:
    profile = _load_profile(args)
    store = SqlProfileStore(Path(args.db or runtime_settings_from_env().db_path))
    profile_id = store.save_profile(profile)
    print(f"Profile: {profile_id}")


def cmd_list(args: argparse.Namespace) -> None:
    db_path = Path(args.db or runtime_settings_from_env().db_path)
    if not db_path.exists():
        print(f"Store not found: {db_path}")
        return
    profiles = SqlProfileStore(db_path).list_profiles(args.owner)
    if not profiles:
        print("No profiles for this owner.")
        return
    print(f"Found {len(profiles)} profiles for {args.owner}:\n")
    for profile in profiles:
        print(f"ID: {profile.profile_id}")
        print(f"  Skills: {', '.join(s.name for s in profile.skills) or '-'}")
        print(f"  Paths: {', '.join(p.path_id for p in profile.paths) or '-'}")
        print()


def main(argv=None):
    # Load .env if present (LIFEPATH_DB_PATH, LIFEPATH_TASK_SERVICE_URL, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="lifepath", description="Score, simulate and plan life and career paths")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    val = subparsers.add_parser("validate", help="Validate a profile JSON")
    val.add_argument("--input", required=True, help="Path to profile JSON")
    val.set_defaults(func=cmd_validate)

    sco = subparsers.add_parser("score", help="Score and rank every path in a profile")
    sco.add_argument("--input", required=True, help="Path to profile JSON")
    sco.add_argument("--weights", help="Path to scoring weights JSON (must sum to 1.0)")
    sco.add_argument("--config", help="Path to engine config JSON")
    sco.set_defaults(func=cmd_score)

    sim = subparsers.add_parser("simulate", help="Simulate outcomes for one path")
    sim.add_argument("--input", required=True, help="Path to profile JSON")
    sim.add_argument("--path-id", required=True, help="Path to simulate")
    sim.add_argument("--config", help="Path to engine config JSON")
    sim.set_defaults(func=cmd_simulate)

    rmp = subparsers.add_parser("roadmap", help="Build a weekly roadmap for one path")
    rmp.add_argument("--input", required=True, help="Path to profile JSON")
    rmp.add_argument("--path-id", required=True, help="Path to plan")
    rmp.add_argument("--tasks", help="Path to candidate tasks JSON list")
    rmp.add_argument("--start", help="Start date YYYY-MM-DD (default: today)")
    rmp.add_argument("--hours", type=float, help="Weekly hour budget (default: profile hoursPerWeek)")
    rmp.add_argument("--config", help="Path to engine config JSON")
    rmp.set_defaults(func=cmd_roadmap)

    ana = subparsers.add_parser("analyze", help="Full analysis: rank, simulate top paths, plan the best")
    ana.add_argument("--input", help="Path to profile JSON")
    ana.add_argument("--profile-id", help="Analyze a stored profile instead of --input")
    ana.add_argument("--db", help="Profile database (default: LIFEPATH_DB_PATH or data/profiles.db)")
    ana.add_argument("--weights", help="Path to scoring weights JSON")
    ana.add_argument("--tasks", help="Path to candidate tasks JSON list")
    ana.add_argument("--tasks-url", help="Task-breakdown service base URL (or set LIFEPATH_TASK_SERVICE_URL)")
    ana.add_argument("--top-n", type=int, help="Number of paths to simulate (default 3)")
    ana.add_argument("--start", help="Roadmap start date YYYY-MM-DD (default: today)")
    ana.add_argument("--config", help="Path to engine config JSON")
    ana.set_defaults(func=cmd_analyze)

    sav = subparsers.add_parser("save", help="Save a profile JSON to the profile database")
    sav.add_argument("--input", required=True, help="Path to profile JSON")
    sav.add_argument("--db", help="Profile database (default: LIFEPATH_DB_PATH or data/profiles.db)")
    sav.set_defaults(func=cmd_save)

    lst = subparsers.add_parser("list", help="List stored profiles of an owner")
    lst.add_argument("--owner", required=True, help="Owner id")
    lst.add_argument("--db", help="Profile database (default: LIFEPATH_DB_PATH or data/profiles.db)")
    lst.set_defaults(func=cmd_list)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        try:
            args.func(args)
        except ValidationError as e:
            print(f"Invalid input: {e}", file=sys.stderr)
            raise SystemExit(2)
        except ConstraintViolation as e:
            print(f"Cannot schedule: {e}", file=sys.stderr)
            raise SystemExit(3)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
