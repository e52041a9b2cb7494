"""
gcsfetch CLI entry point.

Usage:
    python -m gcsfetch mode gs://bucket/key
    python -m gcsfetch get gs://bucket/prefix/ ./out
"""

from gcsfetch.cli import main

if __name__ == "__main__":
    main()
