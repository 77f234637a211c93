"""Data sets with training / selection / testing partitions."""

from hidden_order.data.dataset import DataSet

__all__ = ["DataSet"]
