"""Entry point for ``python -m metaengine.validation.worker``.

Reads ``{"effects": [...], "variances": [...], "model": "fixed"|"random"}``
from stdin and writes the recomputed statistics as JSON to stdout.
"""

from __future__ import annotations

import json
import sys

from metaengine.validation.backends import recompute_with_statsmodels


def main() -> int:
    try:
        request = json.load(sys.stdin)
        result = recompute_with_statsmodels(
            request["effects"],
            request["variances"],
            request.get("model", "random"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        print(f"invalid validation request: {exc}", file=sys.stderr)
        return 2
    json.dump(result, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
