from pantrylens.adapters.cloud_vision.adapter import CloudVisionBackend

__all__ = ["CloudVisionBackend"]
