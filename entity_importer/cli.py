"""Command line interface for the entity importer."""

import argparse
import json
import logging
import sys
from typing import Any, Dict

from .config import ImporterSettings
from .container import ImporterServices
from .errors import ImporterError
from .models.run import BatchAction, BatchResult
from .services.dependencies import dependency_pipelines

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Entity Importer - Compile import profiles and import CSV files"
    )
    parser.add_argument("--config", help="Path to a JSON settings file")
    parser.add_argument("--config-dir", help="Directory holding importer configuration records")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # List profiles
    subparsers.add_parser("profiles", help="List import profiles")

    # Compile a pipeline
    compile_parser = subparsers.add_parser("compile", help="Compile a profile bundle")
    compile_parser.add_argument("profile", help="Import profile id")
    compile_parser.add_argument("bundle", help="Bundle name")

    # Dependency plan
    plan_parser = subparsers.add_parser("plan", help="Show the pipeline execution order")
    plan_parser.add_argument("profile", help="Import profile id")
    plan_parser.add_argument("bundle", nargs="?", help="Bundle name (defaults to the first bundle)")

    # Import
    import_parser = subparsers.add_parser("import", help="Import CSV files")
    import_parser.add_argument("profile", help="Import profile id")
    import_parser.add_argument("bundle", nargs="?", help="Bundle name (defaults to the first bundle)")
    import_parser.add_argument(
        "--file", action="append", default=[], help="CSV file for the bundle's pipeline (repeatable)"
    )
    import_parser.add_argument(
        "--pipeline-file", nargs=2, action="append", default=[], metavar=("PIPELINE", "FILE"),
        help="CSV file for a dependency pipeline (repeatable)",
    )
    import_parser.add_argument("--update", action="store_true", help="Update previously imported records")

    # Rollback
    rollback_parser = subparsers.add_parser("rollback", help="Roll back imported pipelines")
    rollback_parser.add_argument("profile", help="Import profile id")
    rollback_parser.add_argument("bundle", nargs="?", help="Bundle name (defaults to the first bundle)")
    rollback_parser.add_argument("--pipeline", action="append", default=[], help="Pipeline id (repeatable)")

    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if not args.command:
        parser.print_help()
        return 0

    settings = load_settings(args)
    services = ImporterServices.from_settings(settings)

    commands = {
        "profiles": run_profiles,
        "compile": run_compile,
        "plan": run_plan,
        "import": run_import,
        "rollback": run_rollback,
    }

    try:
        return commands[args.command](args, services)
    except ImporterError as e:
        logger.error(str(e))
        _print({"error": e.to_dict()})
        return 1


def load_settings(args) -> ImporterSettings:
    """Build settings from the environment, a settings file and flags."""
    if args.config:
        settings = ImporterSettings.from_json_file(args.config)
    else:
        settings = ImporterSettings.from_env()

    if args.config_dir:
        settings.config_dir = args.config_dir
    return settings


def run_profiles(args, services: ImporterServices) -> int:
    """List import profiles."""
    _print([
        {
            "id": profile.id,
            "label": profile.label,
            "entity_type": profile.entity_type,
            "bundles": profile.bundles,
            "source": profile.source_plugin_id,
        }
        for profile in services.profiles.list()
    ])
    return 0


def run_compile(args, services: ImporterServices) -> int:
    """Print a compiled pipeline definition."""
    profile = services.profiles.load(args.profile)
    pipeline = services.manager.compiler.compile(profile, args.bundle)
    _print(pipeline.to_dict())
    return 0


def run_plan(args, services: ImporterServices) -> int:
    """Print the pipelines an import runs, dependencies first."""
    profile = services.profiles.load(args.profile)
    bundle = args.bundle or profile.first_bundle()
    pipelines = dependency_pipelines(profile, bundle, services.manager)
    _print([{"id": p.id, "label": p.label} for p in pipelines])
    return 0


def run_import(args, services: ImporterServices) -> int:
    """Register the given files and import the bundle."""
    profile = services.profiles.load(args.profile)
    bundle = args.bundle or profile.first_bundle()

    migrations: Dict[str, Dict[str, Any]] = {}

    if args.file:
        migrations[profile.pipeline_id(bundle)] = _migration_values(services, args.file, args.update)

    files_by_pipeline: Dict[str, list] = {}
    for pipeline_id, path in args.pipeline_file:
        files_by_pipeline.setdefault(pipeline_id, []).append(path)
    for pipeline_id, paths in files_by_pipeline.items():
        migrations[pipeline_id] = _migration_values(services, paths, args.update)

    result = services.orchestrator.import_profile(profile.id, bundle, migrations)
    return _finish(result)


def run_rollback(args, services: ImporterServices) -> int:
    """Roll back pipelines imported by this process."""
    result = services.orchestrator.run_action(
        args.profile, args.bundle, BatchAction.ROLLBACK, args.pipeline or None
    )
    return _finish(result)


def _migration_values(services: ImporterServices, paths, update: bool) -> Dict[str, Any]:
    return {
        "configuration": {"file_id": [services.file_store.register(path) for path in paths]},
        "update": update,
    }


def _finish(result: BatchResult) -> int:
    _print(result.to_dict())
    return 0 if result.success else 1


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


if __name__ == "__main__":
    sys.exit(main())
