"""
sales-report-pipeline — Source package.

Modules:
    models       — SalesRecord and Period value objects, error types
    data_source  — Synthetic (seeded NumPy) and CSV sales data sources
    metrics      — Total sales, per-category totals and growth percentages
    formatters   — Plain-text, PDF-style and HTML report renderers
    senders      — Console/email, file, PDF, SMTP and Slack delivery
    pipeline     — ReportPipeline orchestrator (fetch -> compute -> format -> send)
    config       — YAML configuration loading with built-in defaults
"""
