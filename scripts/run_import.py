# -*- coding: utf-8 -*-
"""
Formation Import Runner

Runs a full walk of the Formation search API into Neo4j from a source checkout,
without installing the console script. Same flags as `formation-import`.

Examples:
    # Full import with defaults (brand vogue, market de)
    python scripts/run_import.py

    # Another market, bounded retries, progress bar
    python scripts/run_import.py --market fr --max-attempts 20 --progress-bar

References:
    formation_graph.graph.neo4j_import_processor: orchestration and CLI flags
"""

import sys

from formation_graph.graph.neo4j_import_processor import main

if __name__ == "__main__":
    sys.exit(main())
