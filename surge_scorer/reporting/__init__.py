"""
surge_scorer.reporting - Formatting and export of analysis results.

It does NOT produce new data: everything here reads an already computed
``SeriesAnalysis`` or ``Prediction``.

Modules:
  formatters - ASCII terminal formatters for Typer CLI commands.
  export     - CSV/JSON flat-file export helpers.
"""
