from pantrylens.adapters.sample.adapter import DeterministicStubBackend, FixedSampleBackend

__all__ = ["DeterministicStubBackend", "FixedSampleBackend"]
