"""OCR backends."""
