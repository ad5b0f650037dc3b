"""
Historical package renames.

Older tags and branches still require packages under names that were
moved a long time ago. The registry has no redirect for them, so they are
rewritten to their current name before every lookup.

Entries are additive: a new rename is one more line, never new logic.
"""

from typing import Dict, Mapping

RENAME_TABLE: Dict[str, str] = {
    "symfony/translator": "symfony/translation",
    # Moved to the doctrine organization on 2012-01-02, see
    # https://symfony.com/blog/symfony-2-1-the-doctrine-bundle-has-moved-to-the-doctrine-organization
    "symfony/doctrine-bundle": "doctrine/doctrine-bundle",
    "metadata/metadata": "jms/metadata",
    "zendframework/zend-registry": "zf1/zend-registry",
}


def canonical_name(name: str, renames: Mapping[str, str] = RENAME_TABLE) -> str:
    """Return the current name for a possibly renamed package."""
    return renames.get(name, name)
