"""
Export package.

Produces downloadable Excel, CSV, PDF and JSON files from an in-memory
record list. Records go through the rule evaluator first (filters, date
range, sort), are projected onto the requested columns and formatted per
column type, then handed to a format writer.

Modules of interest:
- models: Export request, column and per-format config models.
- presets: Excel style presets rendered as openpyxl styles.
- writers: One writer per output format.
- service: Request validation, filename generation and the export flow.
"""
