"""Generation task lifecycle and the poller that advances it."""
