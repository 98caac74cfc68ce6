"""Convenience script for producing the single-file iframe document.

Run after the front-end build has written ``dist/index.html`` and
``dist/app.js``.
"""

from __future__ import annotations

import sys

from embedframe.bundler import BundlePaths, bundle
from embedframe.config import get_settings
from embedframe.exceptions import EmbedFrameException


def main() -> int:
    """Main entry point for the merge script."""
    print("embedframe merge")
    print("=" * 40)

    try:
        settings = get_settings()
        settings.build.require_valid()
        result = bundle(BundlePaths.from_settings(settings.bundle))
    except EmbedFrameException as e:
        print(f"  ✗ {e}")
        return 1

    print(
        f"  ✓ {result.output} "
        f"({result.shell_bytes / 1024:.1f} KB shell + {result.script_bytes / 1024:.1f} KB script "
        f"→ {result.output_bytes / 1024:.1f} KB)"
    )
    print(f"  ✓ original shell moved to {result.backup}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
