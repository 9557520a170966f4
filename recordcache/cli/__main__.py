from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from recordcache.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from recordcache.db.batch_insert import BatchInsertError, insert_records
from recordcache.db.connection import db_connection
from recordcache.excel.reader import SheetHeaderError, read_sheet, sheet_names, split_header
from recordcache.logging.error_log import ErrorLogBuffer
from recordcache.logging.init import enable_debug, log_summary, setup_logging
from recordcache.models.collection import CollectionModel, ModelRegistry
from recordcache.models.config_models import AppConfig
from recordcache.models.import_result import ImportResult
from recordcache.services.coordinator import CacheCoordinator
from recordcache.services.importer import ConfigurationError, SpreadsheetImporter
from recordcache.services.record_filter import RecordFilter
from recordcache.services.sources import PgTableSource, SourceFetchError
from recordcache.services.summary import render_summary_line
from recordcache.store.local_cache import LocalCache, json_safe
from recordcache.store.local_storage import open_local_storage
from recordcache.store.properties import PgPropertyStore
from recordcache.store.versions import InvalidScopeError, VersionStore

"""CLI entrypoint.

Commands:
- import: sheet -> records -> collection table, then mark the collection dirty
- inspect: print sheet headers and first rows of a workbook
- fetch: cached read of a collection (refreshes from the table when stale)
- mark-dirty / version: bump or show a collection's version counter

Without a database (DISABLE_DB_CONNECT=1 or connection failure) ``import``
runs in mock mode: records are built and reported but nothing is saved.
"""

EXIT_SUCCESS = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

logger = logging.getLogger("recordcache.cli")


class _DatabaseDisabled(Exception):
    pass


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values override the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="recordcache", description="Versioned record cache and spreadsheet importer")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config file (YAML)")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import a sheet into its collection")
    imp.add_argument("--source", required=True, help="Workbook path or name under source_directory")
    imp.add_argument("--sheet", required=True, help="Sheet name")
    imp.add_argument("--target", default=None, help="Target collection (default: sheet name)")
    imp.add_argument("--header-rows", type=int, default=1, help="Number of header rows")
    imp.add_argument("--header-row-index", type=int, default=None, help="0-based index of the row naming fields")
    imp.add_argument("--recalculate", action="store_true", help="Reload the workbook before reading")

    ins = sub.add_parser("inspect", help="Print sheet headers & first rows then exit")
    ins.add_argument("--source", required=True)

    fetch = sub.add_parser("fetch", help="Read a collection through the local cache")
    fetch.add_argument("collection")
    fetch.add_argument("--filter", default=None, help="Substring match on the display field")

    dirty = sub.add_parser("mark-dirty", help="Bump a collection's version counter")
    dirty.add_argument("collection")

    ver = sub.add_parser("version", help="Show a collection's version counter")
    ver.add_argument("collection")
    return p.parse_args(argv)


def _collection(registry: ModelRegistry, name: str) -> CollectionModel:
    model = registry.get(name)
    if model is None:
        raise ConfigurationError(f"no collection registered as '{name}'")
    return model


def _db_enabled() -> bool:
    return os.getenv("DISABLE_DB_CONNECT") != "1"


def _inspect_data(cfg: AppConfig, source_id: str) -> int:
    importer = SpreadsheetImporter(ModelRegistry(), cfg.source_directory)
    try:
        path = importer.resolve_source(source_id)
        workbook = importer.workbook(path)
    except ConfigurationError as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {path.name}")
    for sname in sheet_names(workbook):
        try:
            sd = split_header(read_sheet(workbook, sname), sname)
        except SheetHeaderError as e:
            print(f"  SHEET: {sname} error={e}")
            continue
        print(f"  SHEET: {sname} cols={sd.columns}")
        sample = [dict(zip(sd.columns, r.values, strict=False)) for r in sd.rows[:3]]
        print("    sample_rows=", json_safe(sample))
    importer.close()
    return EXIT_SUCCESS


def _persist_import(cur, cfg: AppConfig, model: CollectionModel, result: ImportResult) -> int:
    insert_records(cur, model.table, model.field_names, result.records)
    properties = PgPropertyStore(cur, cfg.properties_table)
    properties.ensure_table()
    return VersionStore(properties, user=cfg.user).increment(model.scope, model.name)


def _run_import(cfg: AppConfig, registry: ModelRegistry, args: argparse.Namespace) -> int:
    error_log = ErrorLogBuffer()
    importer = SpreadsheetImporter(registry, cfg.source_directory, error_log=error_log)
    try:
        result = importer.import_sheet_detailed(
            args.source,
            args.sheet,
            target_collection=args.target,
            header_row_count=args.header_rows,
            header_row_index=args.header_row_index,
            recalculate=args.recalculate,
        )
    except (ConfigurationError, SheetHeaderError) as e:
        logger.error(f"import: {e}")
        return EXIT_FATAL
    finally:
        importer.close()

    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"row errors written to {log_path}")

    model = _collection(registry, result.collection)
    db_mode = "mock"
    if not _db_enabled():
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
    else:
        try:
            with db_connection(cfg.database) as cur:
                db_mode = "live"
                version = _persist_import(cur, cfg, model, result)
                logger.info(f"collection={model.name} marked dirty version={version}")
        except (BatchInsertError, InvalidScopeError) as e:
            logger.error(f"import: {e}")
            return EXIT_FATAL
        except psycopg2.Error as e:
            if db_mode == "live":
                logger.error(f"import: {e}")
                return EXIT_FATAL
            logger.info(f"DB connection failed -> fallback to mock mode: {e}")

    logger.info(f"mode={db_mode} imported={result.imported_rows}")
    log_summary(render_summary_line(result)[len("SUMMARY "):])
    return EXIT_PARTIAL_FAILURE if result.dropped_rows else EXIT_SUCCESS


def _run_fetch(cfg: AppConfig, model: CollectionModel, text: str | None) -> int:
    record_filter = None
    if text:
        if not model.display_field:
            logger.error(f"fetch: collection {model.name} has no display_field to filter on")
            return EXIT_FATAL
        record_filter = RecordFilter(model.display_field, text)

    local_cache = LocalCache(open_local_storage(cfg.local_cache_directory))
    with db_connection(cfg.database) as cur:
        properties = PgPropertyStore(cur, cfg.properties_table)
        properties.ensure_table()
        coordinator = CacheCoordinator(VersionStore(properties, user=cfg.user), local_cache)
        source = PgTableSource(cur, model.table, model.field_names)
        records = asyncio.run(coordinator.fetch(model.scope, model.name, source, record_filter))
    for record in records:
        print(json.dumps(record, ensure_ascii=False))
    logger.info(f"fetch collection={model.name} cache={coordinator.last_outcome} records={len(records)}")
    return EXIT_SUCCESS


def _run_version(cfg: AppConfig, model: CollectionModel, bump: bool) -> int:
    with db_connection(cfg.database) as cur:
        properties = PgPropertyStore(cur, cfg.properties_table)
        properties.ensure_table()
        versions = VersionStore(properties, user=cfg.user)
        value = versions.increment(model.scope, model.name) if bump else versions.get(model.scope, model.name)
    print(value)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an empty list must not pull in pytest's own argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        enable_debug(logger)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "inspect":
        return _inspect_data(cfg, args.source)

    registry = ModelRegistry.from_configs(cfg.collections)
    if args.command == "import":
        directory = Path(cfg.source_directory)
        if not directory.exists():
            logger.error(f"directory not found: {directory}")
            return EXIT_FATAL
        return _run_import(cfg, registry, args)

    try:
        model = _collection(registry, args.collection)
        if not _db_enabled():
            raise _DatabaseDisabled(f"{args.command} requires a database (DISABLE_DB_CONNECT=1)")
        if args.command == "fetch":
            return _run_fetch(cfg, model, args.filter)
        return _run_version(cfg, model, bump=(args.command == "mark-dirty"))
    except (ConfigurationError, InvalidScopeError, SourceFetchError, _DatabaseDisabled) as e:
        logger.error(f"{args.command}: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"{args.command}: database error: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
