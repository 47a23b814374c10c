"""Organizational document intelligence.

Turns photographed receipts into typed transaction records through OpenCV
preprocessing, Tesseract OCR and heuristic parsing, and scores an
organization's treasury, attendance and document records for anomalies,
compliance, forecasts and risk.
"""

__version__ = "1.0.0"
