from __future__ import annotations

import argparse
import dataclasses
import logging

from dotenv import load_dotenv

from searchdump.config.logging import get_logger, log_json, setup_logging
from searchdump.config.settings import Settings, load_settings
from searchdump.core.exceptions import ConfigError
from searchdump.pipeline.runner import run_export

EXIT_USAGE = 2


def build_parser(defaults: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="searchdump", description="Dump every search index to object storage")
    parser.add_argument("-f", "--from", dest="from_url", default=defaults.from_url, help="Source URL [SEARCHDUMP_FROM]")
    parser.add_argument(
        "-F", "--from-type", default=defaults.from_type, help="search | elasticsearch | opensearch [SEARCHDUMP_FROM_TYPE]"
    )
    parser.add_argument("-t", "--to", dest="to_url", default=defaults.to_url, help="Destination URL [SEARCHDUMP_TO]")
    parser.add_argument("-T", "--to-type", default=defaults.to_type, help="s3 | local | none [SEARCHDUMP_TO_TYPE]")
    parser.add_argument("-D", "--debug", action="store_true", help="Enable debug logging")

    search = parser.add_argument_group("search source")
    search.add_argument("--search-index-filter", dest="index_filter", default=defaults.index_filter, help="Regexp on index names")
    search.add_argument("--search-size", dest="page_size", type=int, default=defaults.page_size, help="Documents per page")
    search.add_argument("--max-retries", type=int, default=defaults.max_retries)
    search.add_argument(
        "--scroll-keep-alive", default=defaults.scroll_keep_alive, help="Scroll TTL, e.g. 5m (default: derived from retries and timeouts)"
    )

    s3 = parser.add_argument_group("s3 destination")
    s3.add_argument("--s3-access-key", default=defaults.s3.access_key)
    s3.add_argument("--s3-secret-access-key", default=defaults.s3.secret_access_key)
    s3.add_argument("--s3-endpoint", default=defaults.s3.endpoint)
    s3.add_argument("--s3-region", default=defaults.s3.region)
    s3.add_argument("--s3-force-path-style", action="store_true", default=defaults.s3.force_path_style)
    return parser


def settings_from_args(base: Settings, args: argparse.Namespace) -> Settings:
    return dataclasses.replace(
        base,
        from_url=args.from_url,
        from_type=args.from_type,
        to_url=args.to_url,
        to_type=args.to_type,
        index_filter=args.index_filter,
        page_size=args.page_size,
        max_retries=args.max_retries,
        scroll_keep_alive=args.scroll_keep_alive,
        log_level="DEBUG" if args.debug else base.log_level,
        s3=dataclasses.replace(
            base.s3,
            access_key=args.s3_access_key,
            secret_access_key=args.s3_secret_access_key,
            endpoint=args.s3_endpoint,
            region=args.s3_region,
            force_path_style=args.s3_force_path_style,
        ),
    )


def main(argv=None) -> int:
    load_dotenv(override=False)
    logger = get_logger("searchdump")

    try:
        base = load_settings()
    except ConfigError as e:
        setup_logging()
        log_json(logger, logging.ERROR, "invalid_settings", error=str(e))
        return EXIT_USAGE

    args = build_parser(base).parse_args(argv)
    settings = settings_from_args(base, args)
    setup_logging(settings.log_level)

    try:
        settings.validate()
    except ConfigError as e:
        log_json(logger, logging.ERROR, "invalid_settings", error=str(e))
        return EXIT_USAGE

    result = run_export(settings)
    return result.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
