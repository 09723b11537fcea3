"""
File Routing Domain

Watches a single root directory and routes each new file into a subfolder:
- ignore.py - Skip platform metadata and configured names/extensions/folders
- matcher.py - Ordered regex rules, first match wins
- rate_limiter.py - One suggestion request per interval
- worker.py - Rate-limited suggestion worker with a bounded job queue
- dispatcher.py - Per-event pipeline from detection to placement
- mover.py - Final placement with preserve-structure and collision policy
- watcher.py - Service wiring and entry point
"""

__all__ = ["ignore", "matcher", "rate_limiter", "worker", "dispatcher", "mover", "watcher"]
