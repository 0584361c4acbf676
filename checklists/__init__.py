"""Core (UI-agnostic) checklist dashboard logic.

This package contains:
- header and date normalization of uploaded sheets
- role classification and the systems left join
- facet building and multi-select filtering
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
