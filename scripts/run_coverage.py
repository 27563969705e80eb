#!/usr/bin/env python3
"""
Coverage Studio Demo Script

Runs a coverage pack against a sample bible entity using the offline stub
backend, then re-drives any failed angles:
1. Build a character, location or product profile
2. Generate the coverage library for the chosen pack
3. Retry failed angles (optional)
4. Write the library record next to the generated frames

Output artifacts in outputs/coverage/:
- <angle_id>_<hash>.png
- <library_id>.json

Usage:
    python scripts/run_coverage.py
    python scripts/run_coverage.py --pack contact-sheet
    python scripts/run_coverage.py --entity location --pack location --time-of-day dusk
    python scripts/run_coverage.py --failure-rate 0.3 --retry
    python scripts/run_coverage.py --list-packs
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from coverage_studio.common import get_settings, setup_logging, get_logger
from coverage_studio.common.errors import PackNotFoundError
from coverage_studio.common.models import (
    CharacterProfile,
    EntityType,
    LocationProfile,
    ProductProfile,
)
from coverage_studio.coverage import (
    DEFAULT_CATALOG,
    CoverageOptions,
    CoverageOrchestrator,
)
from coverage_studio.generation import GenerationClient, StubImageBackend

settings = get_settings()
setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)
logger = get_logger(__name__)


SAMPLE_ENTITIES = {
    EntityType.CHARACTER: CharacterProfile(
        name="Mara",
        description="A wiry courier in her thirties, cropped silver hair, red rain jacket",
    ),
    EntityType.LOCATION: LocationProfile(
        name="Harbor Market",
        description="Covered fish market on a wet pier, neon signage, hanging lamps",
        time_of_day="night",
    ),
    EntityType.PRODUCT: ProductProfile(
        name="Aero Flask",
        description="Matte black insulated bottle with a copper cap",
    ),
}


def print_packs() -> None:
    print("\nAvailable coverage packs:")
    for pack in DEFAULT_CATALOG.values():
        marker = " (recommended)" if pack.recommended else ""
        types = ", ".join(sorted(t.value for t in pack.applicable_entity_types))
        print(f"  {pack.id:<14} {pack.shot_count:>2} shots  [{types}]{marker}")


def print_progress(percent: int, completed: int, total: int) -> None:
    print(f"\r   Progress: {percent:3d}% ({completed}/{total})", end="", flush=True)


async def run_coverage(
    entity_type: EntityType,
    pack_id: str,
    failure_rate: float,
    retry: bool,
    time_of_day: str | None,
    weather: str | None,
) -> bool:
    entity = SAMPLE_ENTITIES[entity_type]

    print("\n" + "=" * 60)
    print("Coverage Studio - Coverage Demo")
    print(f"   Entity: {entity.display_name} ({entity_type.value})")
    print(f"   Pack: {pack_id}")
    print(f"   Simulated failure rate: {failure_rate:.0%}")
    print("=" * 60)

    output_dir = Path(settings.output_dir)
    client = GenerationClient(
        backend=StubImageBackend(latency=0.05, failure_rate=failure_rate),
        output_dir=str(output_dir),
        default_resolution=settings.default_resolution,
    )
    orchestrator = CoverageOrchestrator(client.generate, settings=settings)
    options = CoverageOptions(
        time_of_day=time_of_day,
        weather=weather,
        retry_delay=0.2,
        inter_group_delay=0.2,
        on_progress=print_progress,
    )

    try:
        print("\nStep 1: Generating coverage library...")
        library = await orchestrator.generate_library(entity, entity_type, pack_id, options)
        print()
        print(f"   Generated: {library.generated_count}/{library.total_count}")
        print(f"   Failed: {library.failed_count}")

        if retry and library.failed_count:
            print("\nStep 2: Retrying failed angles...")
            library = await orchestrator.retry_failed(library, options)
            print()
            print(f"   Generated: {library.generated_count}/{library.total_count}")
            print(f"   Still failed: {library.failed_count}")

        library_path = output_dir / f"{library.id}.json"
        library_path.write_text(library.model_dump_json(indent=2))
        print(f"\n   Library: {library_path}")
        print(f"   Cost: {client.get_cost_report()}")

    except PackNotFoundError as e:
        print(f"\n{e}")
        print_packs()
        return False

    except Exception as e:
        logger.exception("demo_failed", error=str(e))
        print(f"\nDemo failed: {e}")
        return False

    return library.failed_count == 0


def main():
    """Main entry point."""
    import argparse
    parser = argparse.ArgumentParser(
        description="Coverage Studio Demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--entity",
        choices=[t.value for t in EntityType],
        default=EntityType.CHARACTER.value,
        help="Kind of sample entity to cover",
    )
    parser.add_argument(
        "--pack",
        default="turnaround",
        help="Coverage pack id",
    )
    parser.add_argument(
        "--failure-rate",
        type=float,
        default=0.0,
        help="Fraction of stub generations that fail",
    )
    parser.add_argument(
        "--retry",
        action="store_true",
        help="Retry failed angles after the first pass",
    )
    parser.add_argument("--time-of-day", default=None)
    parser.add_argument("--weather", default=None)
    parser.add_argument(
        "--list-packs",
        action="store_true",
        help="List available packs and exit",
    )

    args = parser.parse_args()

    if args.list_packs:
        print_packs()
        sys.exit(0)

    success = asyncio.run(run_coverage(
        entity_type=EntityType(args.entity),
        pack_id=args.pack,
        failure_rate=args.failure_rate,
        retry=args.retry,
        time_of_day=args.time_of_day,
        weather=args.weather,
    ))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
