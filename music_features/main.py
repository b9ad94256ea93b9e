"""Command-line entry point

Analyzes one or more audio files and prints their musical descriptors.

Usage:
    music-features FILE [FILE ...] [--json OUT] [--verbose]
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from music_features.config.config_loader import ConfigurationError, config
from music_features.models.options import AnalysisOptions
from music_features.pipeline.analyzer import MusicFeatureAnalyzer
from music_features.pipeline.batch import BatchAnalyzer, BatchResult


logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging from the ``logging`` config section."""
    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = config.get('logging.file')
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    level = logging.DEBUG if verbose else getattr(logging, str(config.get('logging.level', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def parse_args(argv: List[str]):
    """Split argv into (paths, json_output, verbose)."""
    paths = []
    json_output: Optional[str] = None
    verbose = False

    args = iter(argv)
    for arg in args:
        if arg in ('-v', '--verbose'):
            verbose = True
        elif arg == '--json':
            json_output = next(args, None)
            if json_output is None:
                raise ValueError("--json requires an output path")
        else:
            paths.append(arg)
    return paths, json_output, verbose


def print_report(result: BatchResult) -> None:
    for source, record in result.records.items():
        if record is None:
            print(f"{source}: FAILED")
            continue
        print(
            f"{source}: {record.genre} | {record.tempo} ({record.tempo_bpm:.0f} BPM) | "
            f"energy {record.energy} | mood {record.mood} ({', '.join(record.mood_tags)}) | "
            f"instruments {', '.join(record.instruments)} | confidence {record.confidence:.2f}"
        )

    summary = result.summary
    print("-" * 60)
    print(
        f"Analyzed {summary.successful}/{summary.total} files "
        f"({summary.success_rate:.0%} success, avg {summary.average_processing_time:.2f}s)"
    )


async def main_async(argv: List[str]) -> int:
    """Async main entry point."""
    try:
        paths, json_output, verbose = parse_args(argv)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        print(__doc__)
        return 2
    configure_logging(verbose)

    if not paths:
        print(__doc__)
        return 2

    missing = [p for p in paths if not Path(p).exists()]
    for path in missing:
        logger.error(f"File not found: {path}")

    options = AnalysisOptions.from_config(config)
    options.verbose_logging = verbose
    analyzer = MusicFeatureAnalyzer(config, options=options)
    batch = BatchAnalyzer(analyzer)

    def on_progress(done: int, total: int) -> None:
        logger.info(f"Progress: {done}/{total}")

    result = await batch.run([p for p in paths if p not in missing], on_progress=on_progress)
    print_report(result)

    if json_output:
        payload = {
            'records': {key: (record.to_dict() if record else None) for key, record in result.records.items()},
            'summary': result.summary.to_dict(),
        }
        Path(json_output).write_text(json.dumps(payload, indent=2))
        logger.info(f"Wrote results to {json_output}")

    return 0 if result.summary.failed == 0 and not missing else 1


def main() -> None:
    """Main entry point."""
    try:
        config.validate()
        sys.exit(asyncio.run(main_async(sys.argv[1:])))
    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
    except (ConfigurationError, ValueError) as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
