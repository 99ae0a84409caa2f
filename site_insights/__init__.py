"""SEO Site Insights: crawl analysis, scan snapshots and comparisons."""

__version__ = "1.0.0"
