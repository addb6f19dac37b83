"""kwscope CLI entry point for module execution.

This allows running kwscope as a module:
    python -m kwscope --help
    python -m kwscope run planner.csv --brand acme
"""

from .cli import app

if __name__ == "__main__":
    app()
