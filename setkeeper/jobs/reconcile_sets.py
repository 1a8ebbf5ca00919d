"""
Reconcile tracked sets against Scryfall.

Run this job to check how complete each set's card list is before serving
it: reports discovered cards, placeholders, and numbers that could not be
found.

Usage:
    python -m setkeeper.jobs.reconcile_sets [SET_CODE ...]
"""

import argparse
import asyncio
import logging

from setkeeper.models.set_definition import SETS
from setkeeper.reconcile.reconciler import ReconciledSet, SetReconciler
from setkeeper.services.scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)


async def run_reconcile(set_codes: list[str] | None = None) -> dict[str, ReconciledSet]:
    """
    Reconcile the given sets (all tracked sets by default).

    Returns:
        Dict mapping set code to its reconciled result
    """
    codes = set_codes or list(SETS)
    results: dict[str, ReconciledSet] = {}

    async with ScryfallClient() as client:
        reconciler = SetReconciler(client)
        for code in codes:
            result = await reconciler.reconcile(code)
            results[result.set_code] = result

            if result.exhausted:
                logger.error("%s: unable to load cards", result.set_code)
                continue

            logger.info(
                "%s: %d cards (%d discovered, %d placeholders), expected %d",
                result.set_code,
                result.loaded_count,
                result.discovered_count,
                result.placeholder_count,
                result.expected_total,
            )
            if result.unresolved_numbers:
                logger.warning(
                    "%s: unresolved collector numbers %s",
                    result.set_code,
                    ", ".join(str(n) for n in result.unresolved_numbers),
                )

    return results


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Reconcile tracked card sets")
    parser.add_argument("sets", nargs="*", help=f"Set codes (default: {', '.join(SETS)})")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    results = asyncio.run(run_reconcile(args.sets or None))
    if any(result.exhausted for result in results.values()):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
