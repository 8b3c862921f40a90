"""
Rules package.

Defines the filter, sort and date-range rule models and the evaluator that
applies them to in-memory record lists. The same evaluator backs export
preview, import preview and the report builder.

Modules of interest:
- models: Data classes and wire models for rules.
- engine: Dotted-path lookup, coercion and the filter/sort/unique-values
  operations.
"""
