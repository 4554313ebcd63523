#!/usr/bin/env python3
"""
Example: Authors and Articles CSV Import

This script demonstrates how to use the entity_importer package to import
two CSV files where articles reference their authors through a lookup.

Usage:
    # Demo with generated sample files
    python run_import.py

    # Keep the configuration records in a directory
    python run_import.py --config-dir ./config
"""

import argparse
import json
import logging
import tempfile
from pathlib import Path

from entity_importer.config import ImporterSettings
from entity_importer.container import ImporterServices
from entity_importer.models.profile import FieldMapping, FieldMappingOptions, ImportProfile, ProcessStep
from entity_importer.services.transforms import LOOKUP_PLUGIN_ID
from entity_importer.storage.config_store import InMemoryConfigStore, JsonConfigStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


AUTHORS_CSV = """author_id,name,joined
a1,Grace Hopper,1943-06-30
a2,Alan Turing,1936-11-12
"""

ARTICLES_CSV = """title,author_id,tags
On Compilers,a1,compilers|history
Computable Numbers,a2,math
"""


def configure(services: ImporterServices):
    """Create the author and article importers with their field mappings."""
    profiles = services.profiles

    profiles.save(ImportProfile(
        id="authors",
        label="Authors",
        source={"plugin_id": "entity_import_csv", "configuration": {"has_header": True}},
        entity={"type": "user", "bundles": ["user"]},
    ))
    profiles.save_field_mapping(FieldMapping("name", "name", "authors", "user"))
    profiles.save_field_mapping(FieldMapping(
        "joined", "created", "authors", "user",
        processing=[ProcessStep("format_date", {"to_format": "%d %b %Y"})],
    ))
    profiles.save_mapping_options(FieldMappingOptions("authors", [
        {"identifier_name": "author_id", "identifier_type": "string"},
    ]))

    profiles.save(ImportProfile(
        id="articles",
        label="Articles",
        display_page=True,
        source={"plugin_id": "entity_import_csv", "configuration": {"has_header": True}},
        entity={"type": "node", "bundles": ["article"]},
    ))
    profiles.save_field_mapping(FieldMapping("title", "title", "articles", "article"))
    profiles.save_field_mapping(FieldMapping(
        "author_id", "uid", "articles", "article",
        processing=[ProcessStep(LOOKUP_PLUGIN_ID, {"migration": "entity_import:authors:user"})],
    ))
    profiles.save_field_mapping(FieldMapping(
        "tags", "field_tags", "articles", "article",
        processing=[ProcessStep("explode", {"delimiter": "|"})],
    ))


def run_demo(services: ImporterServices, work_dir: Path):
    """Import the sample files and print what was created."""
    authors_path = work_dir / "authors.csv"
    articles_path = work_dir / "articles.csv"
    authors_path.write_text(AUTHORS_CSV, encoding="utf-8")
    articles_path.write_text(ARTICLES_CSV, encoding="utf-8")

    plan = services.orchestrator.plan("articles", "article")
    logger.info(f"Execution order: {[p.id for p in plan]}")

    result = services.orchestrator.import_profile("articles", "article", {
        "entity_import:authors:user": {
            "configuration": {"file_id": [services.file_store.register(str(authors_path))]},
        },
        "entity_import:articles:article": {
            "configuration": {"file_id": [services.file_store.register(str(articles_path))]},
        },
    })

    logger.info(result.message)
    print(json.dumps(services.executor.writer.entities, indent=2))


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Authors and Articles CSV Import"
    )
    parser.add_argument(
        "--config-dir",
        help="Directory for configuration records (in memory when omitted)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    with tempfile.TemporaryDirectory() as work_dir:
        settings = ImporterSettings(config_dir=args.config_dir or "./config", temp_dir=work_dir)
        store = JsonConfigStore(args.config_dir) if args.config_dir else InMemoryConfigStore()
        services = ImporterServices.from_settings(settings, store=store)

        configure(services)
        run_demo(services, Path(work_dir))


if __name__ == "__main__":
    main()
