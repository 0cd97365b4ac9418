"""Core domain package for pillbox.

Core contains mention resolution, link boundary scanning, and the memoised
composition of both, without any Telegram, Rich or storage-specific code.
"""
