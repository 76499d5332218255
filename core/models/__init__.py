from .mixins import DescribedModelMixin, TimestampedMixin

__all__ = [
    "TimestampedMixin",
    "DescribedModelMixin",
]
