"""Command-line entry point.

Usage examples:
    prospector find --industry agencies
    prospector find --keywords "web design,marketing"
    prospector scrape --urls "site1.com,site2.com"
    prospector scrape --file urls.txt --wp-only
"""
import argparse
import asyncio
import sys
from collections.abc import Callable
from pathlib import Path

import httpx

from prospector.config import Pacing, Settings
from prospector.exceptions.custom import ExportError, FetchError, UrlValidationError
from prospector.main import configure_logging
from prospector.mappers.summary import summarize_scrape
from prospector.mappers.url_list import (
    SAMPLE_URLS,
    read_urls_from_file,
    sample_url_file_content,
    split_url_argument,
    validate_urls,
)
from prospector.schemas.responses import PipelineResult
from prospector.services.factory import build_services
from prospector.services.search_discoverer import INDUSTRY_QUERIES

Prompt = Callable[[str], str]


class CliError(Exception):
    pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prospector",
        description="Find WordPress websites and collect their public contact information",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command")

    scrape = sub.add_parser("scrape", help="Scrape contact data from a list of sites")
    scrape.add_argument("-u", "--urls", help="Comma-separated list of URLs to scrape")
    scrape.add_argument("-f", "--file", help="File containing URLs (one per line)")
    scrape.add_argument("-o", "--output", default="wordpress_scrape", help="Output file prefix")
    scrape.add_argument("--wp-only", action="store_true", help="Only process WordPress sites")
    scrape.add_argument("--delay", type=int, default=1000, help="Delay between requests (ms)")
    scrape.add_argument("--timeout", type=int, default=10000, help="Request timeout (ms)")

    sub.add_parser("interactive", aliases=["i"], help="Run in guided interactive mode")

    validate = sub.add_parser("validate", help="Validate a list of URLs")
    validate.add_argument("-u", "--urls", help="Comma-separated list of URLs to validate")
    validate.add_argument("-f", "--file", help="File containing URLs to validate")

    sample = sub.add_parser("generate-sample", help="Generate a sample URLs file")
    sample.add_argument("-o", "--output", default="sample-urls.txt", help="Output file path")

    find = sub.add_parser("find", help="Find WordPress websites using search")
    find.add_argument("-i", "--industry", choices=sorted(INDUSTRY_QUERIES), help="Target industry")
    find.add_argument("-k", "--keywords", help="Comma-separated keywords to search for")
    find.add_argument("-q", "--queries", help="Custom search queries (comma-separated)")
    find.add_argument("-m", "--max-results", type=int, default=50, help="Maximum search results")
    find.add_argument("-p", "--pages", type=int, default=3, help="Result pages per query")
    find.add_argument("-o", "--output", default="google_search", help="Output file prefix")
    find.add_argument("--no-validate", action="store_true", help="Skip WordPress validation")
    find.add_argument("--no-emails", action="store_true", help="Skip contact extraction")
    find.add_argument("--delay", type=int, default=2000, help="Delay between requests (ms)")
    find.add_argument("--timeout", type=int, default=10000, help="Request timeout (ms)")

    for name, industry, prefix in (
        ("find-agencies", "agencies", "wp_agencies"),
        ("find-ecommerce", "ecommerce", "wp_ecommerce"),
    ):
        quick = sub.add_parser(name, help=f"Find WordPress {industry} sites")
        quick.add_argument("-m", "--max-results", type=int, default=30, help="Maximum results")
        quick.add_argument("-o", "--output", default=prefix, help="Output prefix")
        quick.set_defaults(industry=industry)

    return parser


def _collect_urls(args: argparse.Namespace) -> list[str]:
    if args.urls:
        urls = split_url_argument(args.urls)
    elif args.file:
        urls = read_urls_from_file(args.file)
    else:
        raise CliError("Please provide URLs using --urls or --file option")
    if not urls:
        raise CliError("No URLs provided")
    return urls


def _print_exports(exports: dict, indent: str = "   ") -> None:
    for name, value in exports.items():
        if isinstance(value, dict):
            _print_exports(value, indent)
        else:
            print(f"{indent}{name}: {value}")


def _print_pipeline_summary(result: PipelineResult) -> None:
    s = result.summary
    print("\nFinal prospecting summary")
    print("=" * 50)
    print(f"Search results found: {s.total_search_results}")
    print(f"WordPress sites confirmed: {s.confirmed_platform_sites} ({s.platform_detection_rate}%)")
    print(f"Sites with contact info: {s.sites_with_emails}")
    print(f"Total email addresses: {s.total_emails}")
    print(f"Unique email addresses: {s.unique_emails}")


async def _scrape_urls(
    settings: Settings, urls: list[str], prefix: str, *, delay: int, timeout_ms: int, wp_only: bool,
) -> int:
    validation = validate_urls(urls)
    if validation.invalid:
        print(f"Found {len(validation.invalid)} invalid URLs:", file=sys.stderr)
        for url in validation.invalid:
            print(f"   - {url}", file=sys.stderr)
    if not validation.valid:
        raise CliError("No valid URLs to scrape")

    scrape_options = settings.scrape_options(
        pacing=Pacing(delay_ms=delay),
        timeout=timeout_ms / 1000,
        only_platform=wp_only,
    )
    async with httpx.AsyncClient(timeout=30.0) as client:
        services = build_services(client, settings, scrape_options=scrape_options)
        results = await services.scraper.scrape_batch(validation.valid)

    summary = summarize_scrape(results)
    print("\nScraping summary")
    print("=" * 50)
    print(f"Total sites processed: {summary.total_sites}")
    print(f"WordPress sites: {summary.platform_sites}")
    print(f"Sites with emails: {summary.sites_with_emails}")
    print(f"Total emails found: {summary.total_emails}")
    print(f"Unique emails: {summary.unique_emails}")
    if summary.errors:
        print(f"Sites that failed: {summary.errors}")

    exports = services.exporter.export_all(results, prefix)
    print("\nExport completed:")
    _print_exports(exports)
    return 0


async def _run_pipeline(
    settings: Settings,
    prefix: str,
    *,
    industry: str | None = None,
    keywords: list[str] | None = None,
    queries: list[str] | None = None,
    max_results: int = 50,
    pages: int = 3,
    validate: bool = True,
    extract: bool = True,
    delay: int | None = None,
    timeout_ms: int | None = None,
) -> int:
    scrape_overrides: dict = {}
    search_overrides: dict = {"max_pages": pages}
    pipeline_overrides: dict = {
        "max_search_results": max_results,
        "validate_platform": validate,
        "extract_contacts": extract,
    }
    if delay is not None:
        search_overrides["pacing"] = Pacing(delay_ms=delay)
        scrape_overrides["pacing"] = Pacing(delay_ms=delay)
        pipeline_overrides["validation_pacing"] = Pacing(delay_ms=delay)
        pipeline_overrides["extraction_pacing"] = Pacing(delay_ms=delay)
    if timeout_ms is not None:
        scrape_overrides["timeout"] = timeout_ms / 1000

    async with httpx.AsyncClient(timeout=30.0) as client:
        services = build_services(
            client,
            settings,
            scrape_options=settings.scrape_options(**scrape_overrides),
            search_options=settings.search_options(**search_overrides),
        )
        pipeline = services.pipeline(settings.pipeline_options(**pipeline_overrides))
        result = await pipeline.run(industry=industry, custom_queries=queries, keywords=keywords)

    _print_pipeline_summary(result)
    exports = pipeline.export_results(result, prefix)
    print("\nExports:")
    _print_exports(exports)
    return 0


def _validate(args: argparse.Namespace) -> int:
    validation = validate_urls(_collect_urls(args))
    print("\nURL validation results:\n")
    print(f"Valid URLs: {len(validation.valid)}")
    print(f"Invalid URLs: {len(validation.invalid)}")
    for label, urls in (("Valid", validation.valid), ("Invalid", validation.invalid)):
        if urls:
            print(f"\n{label} URLs:")
            for url in urls:
                print(f"   - {url}")
    return 0


def _generate_sample(args: argparse.Namespace) -> int:
    try:
        Path(args.output).write_text(sample_url_file_content(), encoding="utf-8")
    except OSError as exc:
        raise CliError(f"Failed to create sample file: {exc}") from exc
    print(f"Sample URL file created: {args.output}")
    return 0


def _choose(prompt: Prompt, question: str, choices: list[tuple[str, str]]) -> str:
    print(question)
    for i, (label, _) in enumerate(choices, start=1):
        print(f"  {i}. {label}")
    while True:
        answer = prompt("> ").strip()
        if answer.isdigit() and 1 <= int(answer) <= len(choices):
            return choices[int(answer) - 1][1]
        print(f"Please enter a number between 1 and {len(choices)}")


def _ask(prompt: Prompt, question: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    answer = prompt(f"{question}{suffix}: ").strip()
    return answer or default


def _ask_int(prompt: Prompt, question: str, default: int, low: int = 0, high: int | None = None) -> int:
    while True:
        raw = _ask(prompt, question, str(default))
        if raw.isdigit() and int(raw) >= low and (high is None or int(raw) <= high):
            return int(raw)
        print("Please enter a valid number")


async def _interactive(settings: Settings, prompt: Prompt = input) -> int:
    print("\nWordPress Prospector - Interactive Mode\n")
    method = _choose(prompt, "How would you like to find WordPress sites?", [
        ("Search for WordPress sites", "search"),
        ("Enter URLs manually", "manual"),
        ("Load from file", "file"),
        ("Use sample WordPress sites", "sample"),
    ])

    if method == "search":
        search_type = _choose(prompt, "What type of search would you like to perform?", [
            ("Industry-specific search", "industry"),
            ("Keyword-based search", "keywords"),
            ("General WordPress search", "general"),
        ])
        industry = None
        keywords = None
        if search_type == "industry":
            industry = _choose(prompt, "Which industry would you like to target?", [
                ("Web Design Agencies", "agencies"),
                ("E-commerce Sites", "ecommerce"),
                ("Blogs & Media", "blogs"),
                ("Business & Corporate", "business"),
                ("Freelancers & Portfolios", "freelancers"),
            ])
        elif search_type == "keywords":
            keywords = split_url_argument(_ask(prompt, "Enter keywords (comma-separated)"))
            if not keywords:
                raise CliError("Please enter at least one keyword")
        max_results = _ask_int(prompt, "Maximum number of sites to find", 30, low=1, high=200)
        prefix = _ask(prompt, "Output file prefix", "wordpress_scrape")
        delay = _ask_int(prompt, "Delay between requests (ms)", 1000)
        return await _run_pipeline(
            settings,
            prefix,
            industry=industry,
            keywords=keywords,
            max_results=max_results,
            pages=3 if industry else settings.search_max_pages,
            delay=delay,
        )

    if method == "manual":
        urls = split_url_argument(_ask(prompt, "Enter URLs (comma-separated)"))
    elif method == "file":
        path = _ask(prompt, "Enter path to file containing URLs")
        if not Path(path).exists():
            raise CliError("File does not exist")
        urls = read_urls_from_file(path)
    else:
        urls = list(SAMPLE_URLS)
        print("Using sample WordPress-related sites for demonstration")
    if not urls:
        raise CliError("No URLs provided")

    wp_only = _ask(prompt, "Only process WordPress sites? (y/N)", "n").lower().startswith("y")
    prefix = _ask(prompt, "Output file prefix", "wordpress_scrape")
    delay = _ask_int(prompt, "Delay between requests (ms)", 1000)
    return await _scrape_urls(
        settings, urls, prefix, delay=delay, timeout_ms=int(settings.request_timeout * 1000), wp_only=wp_only,
    )


def _dispatch(args: argparse.Namespace, settings: Settings) -> int:
    command = args.command
    if command == "scrape":
        return asyncio.run(_scrape_urls(
            settings,
            _collect_urls(args),
            args.output,
            delay=args.delay,
            timeout_ms=args.timeout,
            wp_only=args.wp_only,
        ))
    if command in ("interactive", "i"):
        return asyncio.run(_interactive(settings))
    if command == "validate":
        return _validate(args)
    if command == "generate-sample":
        return _generate_sample(args)
    if command == "find":
        return asyncio.run(_run_pipeline(
            settings,
            args.output,
            industry=args.industry,
            keywords=split_url_argument(args.keywords) if args.keywords else None,
            queries=split_url_argument(args.queries) if args.queries else None,
            max_results=args.max_results,
            pages=args.pages,
            validate=not args.no_validate,
            extract=not args.no_emails,
            delay=args.delay,
            timeout_ms=args.timeout,
        ))
    if command in ("find-agencies", "find-ecommerce"):
        return asyncio.run(_run_pipeline(
            settings, args.output, industry=args.industry, max_results=args.max_results,
        ))
    raise CliError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    settings = Settings()
    configure_logging(args.log_level or settings.log_level)

    try:
        return _dispatch(args, settings)
    except (CliError, UrlValidationError, ExportError, FetchError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
