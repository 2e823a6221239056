#!/usr/bin/env python3
"""
Configuration Management CLI Tool

Usage:
    python -m config.cli show          # Show current configuration
    python -m config.cli show --json   # JSON format output
    python -m config.cli validate      # Validate configuration
    python -m config.cli env           # Generate environment variable template
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path


def cmd_show(args):
    """Show current configuration"""
    from config.settings import settings

    if args.json:
        data = settings.model_dump(mode="json")

        # Convert Path to string
        def convert_paths(obj):
            if isinstance(obj, dict):
                return {k: convert_paths(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_paths(v) for v in obj]
            elif isinstance(obj, Path):
                return str(obj)
            return obj

        data = convert_paths(data)
        if data.get("web", {}).get("metrics_key"):
            data["web"]["metrics_key"] = "*" * 8
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return

    print("=" * 60)
    print(f"{settings.app_name} Configuration")
    print("=" * 60)

    print("\n📁 Data Directories:")
    print(f"  data_dir:    {settings.data_dir}")
    print(f"  log_dir:     {settings.log_dir}")

    print("\n🌐 Service Configuration:")
    print(f"  host:         {settings.host}")
    print(f"  serve_port:   {settings.serve_port}")

    print("\n🗂️  Metadata Cache:")
    print(f"  backend:      {settings.metadata.cache_backend}")
    if settings.metadata.cache_backend == "sqlite":
        print(f"  path:         {settings.metadata_cache_path}")
    else:
        print(f"  max_entries:  {settings.metadata.memory_cache_size}")
    print(f"  ttl:          {settings.metadata.cache_ttl}s")
    print(f"  key_prefix:   {settings.metadata.cache_key_prefix!r}")
    print(f"  purge_every:  {settings.metadata.cache_purge_interval}s")

    print("\n🔗 Outbound Fetch:")
    print(f"  user_agent:      {settings.metadata.user_agent}")
    print(f"  generic_timeout: {settings.metadata.generic_timeout}s")
    print(f"  max_page_bytes:  {settings.metadata.max_page_bytes}")
    print(f"  arxiv_api_url:   {settings.arxiv.api_url}")
    print(f"  arxiv_timeout:   {settings.arxiv.api_timeout}s")
    print(f"  arxiv_max_bytes: {settings.arxiv.max_response_bytes}")

    print("\n🗄️ Database Configuration:")
    print(f"  timeout:          {settings.db.timeout}s")
    print(f"  max_retries:      {settings.db.max_retries}")
    print(f"  retry_base_sleep: {settings.db.retry_base_sleep}s")

    print("\n🌐 Web Configuration:")
    print(f"  access_log:       {settings.web.access_log}")
    print(f"  max_content:      {settings.web.max_content_length}")
    print(f"  enable_metrics:   {settings.web.enable_metrics}")
    print(f"  metrics_key:      {'*' * 8 if settings.web.metrics_key else '(not set)'}")

    print("\n📋 Log Configuration:")
    print(f"  log_level:    {settings.log_level}")
    print(f"  log_format:   {settings.log_format}")
    print(f"  log_to_file:  {settings.log_to_file}")

    print("\n" + "=" * 60)


def cmd_validate(args):
    """Validate configuration"""
    from config.settings import settings

    errors = []
    warnings = []

    if not settings.data_dir.exists():
        warnings.append(f"Data directory does not exist (created on first cache write): {settings.data_dir}")

    if not settings.metadata.user_agent.strip():
        errors.append("User-Agent is empty; some sites reject anonymous clients")

    if settings.metadata.generic_timeout <= 0:
        errors.append(f"Generic fetch timeout must be positive, got {settings.metadata.generic_timeout}")
    if settings.arxiv.api_timeout <= 0:
        errors.append(f"arXiv API timeout must be positive, got {settings.arxiv.api_timeout}")
    if settings.metadata.max_page_bytes <= 0 or settings.arxiv.max_response_bytes <= 0:
        errors.append("Response size caps must be positive")

    if settings.metadata.cache_backend == "memory":
        warnings.append("In-memory metadata cache is per-process and lost on restart")

    if settings.web.enable_metrics and not settings.web.metrics_key:
        warnings.append("/metrics is enabled without a metrics key")

    if errors:
        print("❌ Configuration validation failed:")
        for e in errors:
            print(f"  - {e}")
        print()

    if warnings:
        print("⚠️  Configuration warnings:")
        for w in warnings:
            print(f"  - {w}")
        print()

    if not errors and not warnings:
        print("✅ Configuration validation passed")
    elif not errors:
        print("✅ Configuration validation passed (with warnings)")

    return 1 if errors else 0


def cmd_env(args):
    """Generate environment variable template"""
    from config.settings import settings

    print("# Environment variable representation of current configuration")
    print("# Can be copied to .env file")
    print()

    print(f"PAPER_TRACKER_APP_NAME={settings.app_name}")
    print(f"PAPER_TRACKER_DATA_DIR={settings.data_dir}")
    print(f"PAPER_TRACKER_HOST={settings.host}")
    print(f"PAPER_TRACKER_SERVE_PORT={settings.serve_port}")
    print(f"PAPER_TRACKER_LOG_LEVEL={settings.log_level}")
    print(f"PAPER_TRACKER_LOG_FORMAT={settings.log_format}")
    print(f"PAPER_TRACKER_LOG_TO_FILE={str(settings.log_to_file).lower()}")
    print()

    print(f"PAPER_TRACKER_METADATA_CACHE_BACKEND={settings.metadata.cache_backend}")
    print(f"PAPER_TRACKER_METADATA_CACHE_TTL={settings.metadata.cache_ttl}")
    print(f"PAPER_TRACKER_METADATA_CACHE_KEY_PREFIX={settings.metadata.cache_key_prefix}")
    print(f"PAPER_TRACKER_METADATA_CACHE_DB_NAME={settings.metadata.cache_db_name}")
    print(f"PAPER_TRACKER_METADATA_MEMORY_CACHE_SIZE={settings.metadata.memory_cache_size}")
    print(f"PAPER_TRACKER_METADATA_USER_AGENT={settings.metadata.user_agent}")
    print(f"PAPER_TRACKER_METADATA_GENERIC_TIMEOUT={settings.metadata.generic_timeout}")
    print(f"PAPER_TRACKER_METADATA_MAX_PAGE_BYTES={settings.metadata.max_page_bytes}")
    print(f"PAPER_TRACKER_METADATA_CACHE_PURGE_INTERVAL={settings.metadata.cache_purge_interval}")
    print()

    print(f"PAPER_TRACKER_ARXIV_API_URL={settings.arxiv.api_url}")
    print(f"PAPER_TRACKER_ARXIV_API_TIMEOUT={settings.arxiv.api_timeout}")
    print(f"PAPER_TRACKER_ARXIV_MAX_RESPONSE_BYTES={settings.arxiv.max_response_bytes}")
    print()

    print(f"PAPER_TRACKER_DB_TIMEOUT={settings.db.timeout}")
    print(f"PAPER_TRACKER_DB_MAX_RETRIES={settings.db.max_retries}")
    print(f"PAPER_TRACKER_DB_RETRY_BASE_SLEEP={settings.db.retry_base_sleep}")
    print()

    print(f"PAPER_TRACKER_ACCESS_LOG={str(settings.web.access_log).lower()}")
    print(f"PAPER_TRACKER_ENABLE_METRICS={str(settings.web.enable_metrics).lower()}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Paper Tracker Configuration Management Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m config.cli show          Show current configuration
  python -m config.cli show --json   JSON format output
  python -m config.cli validate      Validate configuration
  python -m config.cli env           Generate environment variables
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    show_parser = subparsers.add_parser("show", help="Show current configuration")
    show_parser.add_argument("--json", action="store_true", help="JSON format output")

    subparsers.add_parser("validate", help="Validate configuration")

    subparsers.add_parser("env", help="Generate environment variable template")

    args = parser.parse_args(argv)

    if args.command == "show":
        cmd_show(args)
    elif args.command == "validate":
        sys.exit(cmd_validate(args))
    elif args.command == "env":
        cmd_env(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
