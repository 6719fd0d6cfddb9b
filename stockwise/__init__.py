"""
StockWise inventory intelligence package.
"""
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_ROOT.parent

__version__ = "0.1.0"

__all__ = ["PACKAGE_ROOT", "PROJECT_ROOT", "__version__"]
