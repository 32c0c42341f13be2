"""Core (UI-agnostic) career analysis logic.

This package contains:
- upload decoding (CSV / XLSX -> pandas) and header normalization
- required-column validation per analysis view
- repeated company-slot flattening
- filter normalization and application
- aggregation primitives and per-view compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
