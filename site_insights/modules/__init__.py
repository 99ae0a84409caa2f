"""Site analyzers: architecture, technical health, content, media, reporting and comparison."""
