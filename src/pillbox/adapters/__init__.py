"""Adapters that connect the pillbox core to Telegram, Rich and in-memory stores."""
