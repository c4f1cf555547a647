from pantrylens.adapters.local_engine.adapter import TesseractBackend

__all__ = ["TesseractBackend"]
