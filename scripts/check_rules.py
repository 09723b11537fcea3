#!/usr/bin/env python3
"""
Validate the rules file and show where sample filenames would be routed.

Nothing is moved and the suggestion service is never called; names that
no rule matches are reported as needing a suggestion (or the fallback
folder when suggestions are disabled).

Usage:
    python scripts/check_rules.py [rules.yaml] [filename ...]
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.models.schemas import RoutingConfig
from app.utils.config import get_settings
from app.utils.rules_loader import RulesConfigError, load_config
from domains.file_routing.ignore import should_ignore
from domains.file_routing.matcher import PatternMatcher


def describe_route(name: str, config: RoutingConfig, matcher: PatternMatcher, fallback: str) -> str:
    """Explain what the pipeline would do with ``name``."""
    if should_ignore(name, config.ignore):
        return "ignored"

    destination = matcher.match(name)
    if destination and destination.strip():
        return f"rule -> {destination.strip()}"

    if config.suggestions.enabled:
        return "suggestion service"

    return f"fallback -> {fallback}"


def main(argv: Optional[list[str]] = None) -> int:
    """Main execution function."""
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()

    rules_file = Path(argv[0]) if argv else settings.rules_file
    names = argv[1:]

    logger.info(f"Checking rules in {rules_file}...")
    try:
        config = load_config(rules_file)
    except RulesConfigError as e:
        logger.error(str(e))
        return 1

    matcher = PatternMatcher(config.rules)
    logger.success(f"✓ {len(matcher)} rules compiled")
    logger.info(f"  Suggestions: {'enabled' if config.suggestions.enabled else 'disabled'}")
    logger.info(f"  Preserve structure: {config.options.preserve_structure}")

    for name in names:
        logger.info(f"  {name}: {describe_route(name, config, matcher, settings.fallback_folder)}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
