"""
BacklinkScout package initializer.
Defines package version and exposes the CLI group and the engine.
"""
__version__ = "0.1.0"

from .cli import cli  # noqa: E402
from .engine import CrawlResult, Engine, run_crawl  # noqa: E402

__all__ = ["__version__", "cli", "CrawlResult", "Engine", "run_crawl"]
