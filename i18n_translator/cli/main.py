"""Command-line interface for the i18n translator."""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core import FallbackRouter, InMemoryCache, JsonFileCache, TranslationResult
from ..core.exceptions import ConfigurationError, ValidationError
from ..core.models import RouterStats
from ..translators import TranslatorFactory
from ..utils.config import ConfigManager

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_ERROR = 2


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: List of command line arguments. If None, uses sys.argv[1:].

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description='Translate UI strings through a fallback chain of translation providers.'
    )

    # Input options
    io_group = parser.add_argument_group('Input/Output')
    io_group.add_argument(
        'texts',
        nargs='*',
        help='Texts to translate'
    )
    io_group.add_argument(
        '-i', '--input',
        type=str,
        help='File with one text per line (blank lines are ignored)'
    )
    io_group.add_argument(
        '--json',
        action='store_true',
        help='Print results as JSON'
    )
    io_group.add_argument(
        '--stats',
        action='store_true',
        help='Print cache and provider statistics after translating'
    )

    # Language options
    lang_group = parser.add_argument_group('Language')
    lang_group.add_argument(
        '-s', '--source-lang',
        type=str,
        default=None,
        help='Source language code (e.g., en)'
    )
    lang_group.add_argument(
        '-t', '--target-lang',
        action='append',
        default=None,
        help='Target language code (e.g., de); repeat for several languages'
    )

    # Translation options
    trans_group = parser.add_argument_group('Translation')
    trans_group.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Overall deadline per target language in seconds'
    )
    trans_group.add_argument(
        '--list-providers',
        action='store_true',
        help='List configured providers and exit'
    )

    # Output options
    out_group = parser.add_argument_group('Output')
    out_group.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (can be used multiple times)'
    )
    out_group.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Suppress non-error output'
    )

    # Config options
    config_group = parser.add_argument_group('Configuration')
    config_group.add_argument(
        '--config',
        type=str,
        help='Path to configuration file'
    )

    return parser.parse_args(args)


def setup_logging(verbosity: int = 0, quiet: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        quiet: If True, suppress all non-error output
    """
    if quiet:
        log_level = logging.ERROR
    else:
        log_level = max(
            logging.WARNING - (verbosity * 10),
            logging.DEBUG
        )

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def list_providers(config: ConfigManager) -> None:
    """Print the configured providers in tier order."""
    providers = config.get('providers', {})
    if not providers:
        print("No providers configured.")
        return

    ready = {provider.name for provider in config.provider_configs()}
    max_name_len = max(len(name) for name in providers)
    print(f"{'Provider':<{max_name_len}}  Tier  Status")
    print('-' * (max_name_len + 20))

    for name, block in sorted(providers.items(), key=lambda item: item[1].get('tier', 4)):
        if not block.get('enabled', True):
            status = 'disabled'
        elif name in ready:
            status = 'ready'
        else:
            status = 'no API key'
        print(f"{name:<{max_name_len}}  {block.get('tier', 4):<4}  {status}")


def read_texts(args: argparse.Namespace) -> List[str]:
    """Collect texts from the command line and the input file."""
    texts = list(args.texts)
    if args.input:
        path = Path(args.input).expanduser()
        with open(path, 'r', encoding='utf-8') as f:
            texts.extend(line.rstrip('\n') for line in f if line.strip())
    return texts


def build_router(config: ConfigManager) -> FallbackRouter:
    """Create the router, its provider clients and its cache from configuration.

    Raises:
        ConfigurationError: If no usable provider is configured
    """
    translators = [
        TranslatorFactory.create_translator(provider)
        for provider in config.provider_configs()
    ]

    settings = config.cache_settings()
    if settings['path']:
        cache = JsonFileCache(settings['path'], capacity=settings['capacity'], ttl=settings['ttl'])
        cache.load()
    else:
        cache = InMemoryCache(capacity=settings['capacity'], ttl=settings['ttl'])

    return FallbackRouter(
        translators,
        cache=cache,
        language_preferences=config.language_preferences(),
    )


async def translate_all(
    router: FallbackRouter,
    texts: List[str],
    source_language: str,
    target_languages: List[str],
    timeout: Optional[float] = None,
) -> Dict[str, TranslationResult]:
    """Translate ``texts`` into every target language concurrently."""
    async with router:
        results = await asyncio.gather(*(
            router.translate_texts(texts, source_language, target, timeout=timeout)
            for target in target_languages
        ))
    return dict(zip(target_languages, results))


def result_to_dict(result: TranslationResult) -> List[Dict[str, Any]]:
    return [
        {
            'source': entry.source,
            'text': entry.text,
            'provider': entry.provider,
            'cached': entry.cached,
            'error': str(entry.error) if entry.error else None,
        }
        for entry in result
    ]


def stats_to_dict(stats: RouterStats) -> Dict[str, Any]:
    return {
        'cache': dict(asdict(stats.cache), hit_ratio=stats.cache.hit_ratio),
        'providers': {
            name: dict(asdict(provider), success_rate=provider.success_rate)
            for name, provider in stats.providers.items()
        },
    }


def print_results(results: Dict[str, TranslationResult]) -> None:
    for target, result in results.items():
        print(f"[{target}]")
        for entry in result:
            if entry.ok:
                origin = 'cache' if entry.cached else entry.provider
                print(f"  {entry.source} -> {entry.text} ({origin})")
            else:
                print(f"  {entry.source} -> ERROR: {entry.error}")


def print_stats(stats: RouterStats) -> None:
    cache = stats.cache
    print(f"Cache: {cache.hits} hits, {cache.misses} misses, "
          f"{cache.size}/{cache.capacity} entries, hit ratio {cache.hit_ratio:.1%}")
    for name, provider in stats.providers.items():
        print(f"{name}: {provider.requests} requests, {provider.successes} ok, "
              f"{provider.failures} failed, success rate {provider.success_rate:.1%}")


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments. If None, uses sys.argv[1:].

    Returns:
        int: 0 if every text was translated, 1 if some failed, 2 on
            configuration or input errors
    """
    args = parse_args(args)
    setup_logging(verbosity=args.verbose, quiet=args.quiet)

    config = ConfigManager(args.config)

    if args.list_providers:
        list_providers(config)
        return EXIT_OK

    try:
        texts = read_texts(args)
    except OSError as e:
        logger.error(f"Failed to read input file {args.input}: {e}")
        return EXIT_ERROR
    if not texts:
        logger.error("Nothing to translate: pass texts or --input")
        return EXIT_ERROR

    source_lang = args.source_lang or config.get('languages.source')
    target_langs = args.target_lang or config.get('languages.targets', [])
    if not source_lang or not target_langs:
        logger.error("Source and target languages must be specified")
        return EXIT_ERROR

    try:
        router = build_router(config)
    except (ConfigurationError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_ERROR

    try:
        results = asyncio.run(translate_all(router, texts, source_lang, target_langs, args.timeout))
    except ValidationError as e:
        logger.error(f"Invalid request: {e}")
        return EXIT_ERROR

    if isinstance(router.cache, JsonFileCache):
        router.cache.save()

    if args.json:
        output = {target: result_to_dict(result) for target, result in results.items()}
        if args.stats:
            output['_stats'] = stats_to_dict(router.stats())
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        print_results(results)
        if args.stats:
            print_stats(router.stats())

    failed = sum(result.failed_count for result in results.values())
    if failed:
        logger.warning(f"{failed} text(s) could not be translated")
        return EXIT_PARTIAL
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
